"""
Workflow Models - JSON structures for workflow definitions.

These models match the builder's saved graph format:
{"nodes": [{id, type, config, ...}], "edges": [{source, target}]}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class WorkflowEdge(BaseModel):
    """
    Connection between two nodes.

    Example: {"source": "input-1", "target": "http-1", "targetPort": "body"}
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    source: str = Field(..., description="Upstream node id")
    target: str = Field(..., description="Downstream node id")
    target_port: Optional[str] = Field(
        None,
        alias="targetPort",
        description="Input port receiving the upstream output; merged when unset",
    )


class WorkflowNode(BaseModel):
    """A node instance in a workflow."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Required
    id: str = Field(..., description="Node id (unique within workflow)")
    type: str = Field(..., description="Node type (e.g., 'http_request')")

    # Optional
    config: Dict[str, Any] = Field(default_factory=dict)
    inputs: Dict[str, Any] = Field(
        default_factory=dict,
        description="Static inputs, overlaid by upstream output",
    )
    disabled: bool = Field(False, description="If true, node is skipped")
    continue_on_fail: bool = Field(False, alias="continueOnFail")
    label: Optional[str] = Field(None, description="Display label")


class WorkflowDefinition(BaseModel):
    """Complete workflow definition."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Metadata
    id: Optional[str] = Field(None, description="Workflow ID")
    name: str = Field("Unnamed Workflow", description="Workflow name")

    # Structure
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> "WorkflowDefinition":
        ids = [node.id for node in self.nodes]
        duplicates = {i for i in ids if ids.count(i) > 1}
        if duplicates:
            raise ValueError(f"Duplicate node ids: {sorted(duplicates)}")
        known = set(ids)
        for edge in self.edges:
            if edge.source not in known or edge.target not in known:
                raise ValueError(f"Edge {edge.source} -> {edge.target} references an unknown node")
        return self

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Get node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_start_nodes(self) -> List[WorkflowNode]:
        """Get nodes that have no incoming edges (entry points)."""
        targets = {edge.target for edge in self.edges}
        return [
            node for node in self.nodes
            if node.id not in targets and not node.disabled
        ]

    def get_incoming_edges(self, node_id: str) -> List[WorkflowEdge]:
        """Edges ending at node_id, in declaration order."""
        return [edge for edge in self.edges if edge.target == node_id]

    def get_downstream_nodes(self, node_id: str) -> List[str]:
        """Get ids of nodes fed by this node."""
        return [edge.target for edge in self.edges if edge.source == node_id]

    def get_upstream_nodes(self, node_id: str) -> List[str]:
        """Get ids of nodes feeding this node."""
        return [edge.source for edge in self.edges if edge.target == node_id]


def parse_workflow(data: Dict[str, Any]) -> WorkflowDefinition:
    """Parse workflow JSON into WorkflowDefinition."""
    return WorkflowDefinition.model_validate(data)


__all__ = [
    "WorkflowDefinition",
    "WorkflowEdge",
    "WorkflowNode",
    "parse_workflow",
]
