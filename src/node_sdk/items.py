"""
Node Items - Data structures flowing between nodes.

NodeItem is the unit carried in a result envelope's item list.
Each item has JSON data and an optional binary attachment map.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class NodeItem(BaseModel):
    """
    A single output item of a node execution.

    Example:
        item = NodeItem(json_data={"name": "John"}, source="text_input")
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    json_data: Dict[str, Any] = Field(
        default_factory=dict,
        alias="json",
        description="JSON data",
    )
    binary: Optional[Dict[str, Any]] = Field(
        None,
        description="Binary attachments keyed by name",
    )
    source: Optional[str] = Field(
        None,
        description="Operation that produced the item",
    )

    def get(self, key: str, default: Any = None) -> Any:
        """Get value from JSON data."""
        return self.json_data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.json_data[key]

    def __contains__(self, key: str) -> bool:
        return key in self.json_data
