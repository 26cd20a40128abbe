"""
Node Registry - Catalog of node types.

Maps a node type to its {definition, executor, presentation}. A registry
is built once during bootstrap (see nodeflow.bootstrap), frozen, and
then handed to the dispatcher; there is no global instance.

Supports:
1. Manual registration
2. BaseNode instances carrying their own definition
3. Node packs, including entry-point discovery
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any, Dict, Iterable, Iterator, List, Optional

from node_sdk.errors import DuplicateNodeTypeError, RegistryFrozenError

from .models import NodeDefinition, NodePackManifest, RegistryEntry


logger = logging.getLogger(__name__)

# Entry point group for node packs
NODE_PACK_ENTRY_POINT = "nodeflow.nodepacks"


class NodeRegistry:
    """
    Registry of node types.

    Registration order is kept for deterministic listing. Registering
    the same type twice is rejected, and nothing can be registered
    after freeze().

    Usage:
        registry = NodeRegistry()
        registry.register_node(HttpRequestNode(client))
        registry.freeze()

        entry = registry.lookup("http_request")
    """

    def __init__(self):
        """Initialize empty registry."""
        self._entries: Dict[str, RegistryEntry] = {}
        self._packs: Dict[str, NodePackManifest] = {}
        self._frozen = False

    def register(
        self,
        node_type: str,
        definition: NodeDefinition,
        executor: Any,
        presentation: Any = None,
    ) -> RegistryEntry:
        """
        Register a node type.

        Args:
            node_type: Unique type key; must equal definition.node_type
            definition: Node definition
            executor: Object exposing execute(config, inputs)
            presentation: Opaque UI hints

        Returns:
            The stored RegistryEntry

        Raises:
            DuplicateNodeTypeError: If node_type is already registered
            RegistryFrozenError: If the registry has been frozen
            ValueError: If node_type and definition disagree
        """
        if self._frozen:
            raise RegistryFrozenError(f"Registry is frozen; cannot register '{node_type}'")
        if node_type != definition.node_type:
            raise ValueError(
                f"Type key '{node_type}' does not match definition type '{definition.node_type}'"
            )
        if node_type in self._entries:
            raise DuplicateNodeTypeError(node_type)
        if not callable(getattr(executor, "execute", None)):
            raise TypeError(f"Executor for '{node_type}' has no execute(config, inputs)")

        entry = RegistryEntry(
            node_type=node_type,
            definition=definition,
            executor=executor,
            presentation=presentation,
        )
        self._entries[node_type] = entry

        logger.debug(f"Registered node: {node_type}")
        return entry

    def register_node(self, node: Any) -> RegistryEntry:
        """Register a BaseNode instance using its own definition and presentation."""
        definition = node.definition
        return self.register(definition.node_type, definition, node, node.presentation)

    def register_pack(self, manifest: NodePackManifest, nodes: Iterable[Any]) -> None:
        """
        Register a node pack with its nodes.

        Args:
            manifest: Pack manifest
            nodes: BaseNode instances
        """
        nodes = list(nodes)
        for node in nodes:
            self.register_node(node)
        self._packs[manifest.name] = manifest

        logger.info(f"Registered pack '{manifest.name}' with {len(nodes)} nodes")

    def discover_entry_points(self, **context: Any) -> int:
        """
        Discover node packs via entry points.

        Entry points are declared in pyproject.toml:

            [project.entry-points."nodeflow.nodepacks"]
            mypack = "mypack:register_nodes"

        The entry point is called with **context (e.g. http_client,
        verifier, settings) and must return (manifest, nodes).

        Returns:
            Number of packs discovered
        """
        count = 0
        for ep in entry_points(group=NODE_PACK_ENTRY_POINT):
            if ep.name in self._packs:
                continue
            try:
                register_func = ep.load()
                manifest, nodes = register_func(**context)
            except Exception as e:
                logger.error(f"Failed to load node pack '{ep.name}': {e}")
                continue

            self.register_pack(manifest, nodes)
            count += 1
            logger.info(f"Discovered node pack: {ep.name}")

        return count

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, node_type: str) -> Optional[RegistryEntry]:
        """Get the entry for a node type, or None."""
        return self._entries.get(node_type)

    def get_definition(self, node_type: str) -> Optional[NodeDefinition]:
        """Get node definition by type."""
        entry = self._entries.get(node_type)
        return entry.definition if entry else None

    def list_types(self) -> List[str]:
        """List registered node types in registration order."""
        return list(self._entries.keys())

    def list_definitions(self) -> List[NodeDefinition]:
        """List all definitions in registration order."""
        return [entry.definition for entry in self._entries.values()]

    def list_packs(self) -> List[NodePackManifest]:
        """List all registered packs."""
        return list(self._packs.values())

    def categories(self) -> List[str]:
        """Distinct categories in first-seen order."""
        return list(dict.fromkeys(d.category for d in self.list_definitions()))

    def group_by_category(self) -> Dict[str, List[NodeDefinition]]:
        """Group definitions by category, preserving registration order."""
        grouped: Dict[str, List[NodeDefinition]] = {}
        for definition in self.list_definitions():
            grouped.setdefault(definition.category, []).append(definition)
        return grouped

    def search(self, term: str) -> List[NodeDefinition]:
        """
        Find definitions matching term (case-insensitive) in type,
        display name, description, or category. An empty term matches all.
        """
        return [d for d in self.list_definitions() if d.matches(term or "")]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(self._entries.values())

    def __contains__(self, node_type: str) -> bool:
        return node_type in self._entries


__all__ = [
    "NodeRegistry",
    "NODE_PACK_ENTRY_POINT",
]
