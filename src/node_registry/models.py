"""
Node Registry Models - Metadata structures for node types and node packs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PortDefinition(BaseModel):
    """A named input or output port of a node."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = Field("any", description="Value type carried by the port")
    description: str = Field("", description="Port description")
    optional: bool = Field(False, description="Whether the port may be left unconnected")


class ConfigOption(BaseModel):
    """A configurable option shown in the node settings form."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    key: str = Field(..., description="Config key")
    type: str = Field("string", description="Option type (string, number, boolean, select, json)")
    default: Any = Field(None, description="Default value")
    description: str = Field("", description="Help text")
    options: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Choices for select options",
    )


class NodeDefinition(BaseModel):
    """
    Immutable descriptor of a node type.

    Created once when the node type is declared and never mutated.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Identity
    node_type: str = Field(..., alias="type", description="Unique node type identifier")
    version: str = Field("1.0.0", description="Node version")

    # Display
    display_name: str = Field(..., alias="displayName", description="Human-readable name")
    description: str = Field("", description="Node description")
    category: str = Field("custom", description="Category used for grouping")
    icon: Optional[str] = Field(None, description="Icon reference")

    # Runtime
    inputs: Dict[str, PortDefinition] = Field(default_factory=dict)
    outputs: Dict[str, PortDefinition] = Field(default_factory=dict)
    config_options: List[ConfigOption] = Field(default_factory=list, alias="configOptions")
    default_config: Dict[str, Any] = Field(default_factory=dict, alias="defaultConfig")

    @model_validator(mode="after")
    def _fill_default_config(self) -> "NodeDefinition":
        # Options with defaults seed the default snapshot unless given explicitly
        if not self.default_config and self.config_options:
            snapshot = {opt.key: opt.default for opt in self.config_options if opt.default is not None}
            object.__setattr__(self, "default_config", snapshot)
        return self

    def matches(self, term: str) -> bool:
        """Case-insensitive match against type, name, description, or category."""
        needle = term.strip().lower()
        if not needle:
            return True
        return any(
            needle in field.lower()
            for field in (self.node_type, self.display_name, self.description, self.category)
        )


class RegistryEntry(BaseModel):
    """Definition, executor, and presentation of one node type."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    node_type: str
    definition: NodeDefinition
    executor: Any = Field(..., description="Object with execute(config, inputs)")
    presentation: Any = Field(None, description="Opaque UI hints (colour, tags, component)")


class NodePackManifest(BaseModel):
    """
    Manifest for a node pack (collection of nodes).

    Used for discovery and registration of bundled nodes.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Pack name (e.g., 'core')")
    version: str = Field("1.0.0", description="Pack version")
    description: str = Field("", description="Pack description")
    author: str = Field("", description="Author name")
    nodes: List[str] = Field(
        default_factory=list,
        description="List of node types in this pack"
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodePackManifest":
        """Create from dictionary."""
        return cls.model_validate(data)


__all__ = [
    "ConfigOption",
    "NodeDefinition",
    "NodePackManifest",
    "PortDefinition",
    "RegistryEntry",
]
