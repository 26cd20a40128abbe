"""
Node Registry - Catalog of node types.

This package provides:
- NodeDefinition: Immutable descriptor of a node type
- PortDefinition / ConfigOption: Port and settings metadata
- RegistryEntry: {definition, executor, presentation}
- NodePackManifest: Package metadata for a node pack
- NodeRegistry: The catalog itself

Supports entry-points based discovery for plugin node packs.
"""

from .models import ConfigOption, NodeDefinition, NodePackManifest, PortDefinition, RegistryEntry
from .registry import NODE_PACK_ENTRY_POINT, NodeRegistry

__all__ = [
    "ConfigOption",
    "NodeDefinition",
    "NodePackManifest",
    "NodeRegistry",
    "NODE_PACK_ENTRY_POINT",
    "PortDefinition",
    "RegistryEntry",
]
