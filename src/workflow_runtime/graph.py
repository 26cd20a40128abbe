"""
Compiled Graph - Executable workflow DAG.

Takes a WorkflowDefinition and compiles it into a graph with a
topological order for one-node-at-a-time execution.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from node_sdk.envelope import AnyEnvelope

from .models import WorkflowDefinition, WorkflowEdge, WorkflowNode


logger = logging.getLogger(__name__)


class NodeStatus(str, Enum):
    """Status of a node during execution."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass
class NodeRunResult:
    """
    Result of running a single node.
    """
    node_id: str
    node_type: str
    status: NodeStatus
    envelope: Optional[AnyEnvelope] = None
    error: Optional[str] = None
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == NodeStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == NodeStatus.ERROR

    @property
    def output(self) -> Dict[str, Any]:
        """Data handed to downstream nodes; empty unless the node succeeded."""
        if self.envelope is None or not self.is_success:
            return {}
        return self.envelope.to_output()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "nodeType": self.node_type,
            "status": self.status.value,
            "error": self.error,
            "durationMs": round(self.duration_ms, 3),
            "result": self.envelope.to_dict() if self.envelope is not None else None,
        }


@dataclass
class CompiledNode:
    """
    A node in the compiled graph with execution metadata.
    """
    id: str
    node_type: str
    config: Dict[str, Any]
    inputs: Dict[str, Any]
    disabled: bool
    continue_on_fail: bool
    position: int

    # Computed during compilation
    incoming: List[WorkflowEdge] = field(default_factory=list)
    downstream: List[str] = field(default_factory=list)

    # Runtime state
    status: NodeStatus = NodeStatus.PENDING
    result: Optional[NodeRunResult] = None

    @property
    def upstream(self) -> List[str]:
        return [edge.source for edge in self.incoming]

    @classmethod
    def from_workflow_node(
        cls,
        node: WorkflowNode,
        position: int,
        incoming: List[WorkflowEdge],
        downstream: List[str],
    ) -> "CompiledNode":
        """Create from workflow node."""
        return cls(
            id=node.id,
            node_type=node.type,
            config=dict(node.config),
            inputs=dict(node.inputs),
            disabled=node.disabled,
            continue_on_fail=node.continue_on_fail,
            position=position,
            incoming=incoming,
            downstream=downstream,
        )


class CompiledGraph:
    """
    Compiled workflow ready for execution.

    Contains:
    - Nodes with their connections
    - Topological order for sequential execution
    - Input assembly from upstream results
    """

    def __init__(self, workflow: WorkflowDefinition):
        """
        Compile workflow into executable graph.

        Args:
            workflow: Source workflow definition

        Raises:
            ValueError: If the workflow has cycles
        """
        self.workflow_id = workflow.id or "unnamed"
        self.workflow_name = workflow.name
        self._workflow = workflow

        self._nodes: Dict[str, CompiledNode] = {}
        self._build_nodes()

        self._execution_order: List[str] = []
        self._compute_execution_order()

    def _build_nodes(self) -> None:
        """Build compiled nodes with connections."""
        for position, node in enumerate(self._workflow.nodes):
            self._nodes[node.id] = CompiledNode.from_workflow_node(
                node=node,
                position=position,
                incoming=self._workflow.get_incoming_edges(node.id),
                downstream=self._workflow.get_downstream_nodes(node.id),
            )

    def _compute_execution_order(self) -> None:
        """
        Compute topological order for execution.

        Uses Kahn's algorithm; ties break on declaration order.
        """
        in_degree: Dict[str, int] = {node_id: 0 for node_id in self._nodes}
        for node_id, node in self._nodes.items():
            in_degree[node_id] += len(node.upstream)

        queue = [node_id for node_id, degree in in_degree.items() if degree == 0]
        order = []

        while queue:
            queue.sort(key=lambda node_id: self._nodes[node_id].position)
            node_id = queue.pop(0)
            order.append(node_id)

            for downstream_id in self._nodes[node_id].downstream:
                in_degree[downstream_id] -= 1
                if in_degree[downstream_id] == 0:
                    queue.append(downstream_id)

        if len(order) != len(self._nodes):
            remaining = sorted(set(self._nodes) - set(order))
            raise ValueError(f"Workflow has cycles involving: {remaining}")

        self._execution_order = order

    @property
    def execution_order(self) -> List[str]:
        """Get node ids in execution order."""
        return self._execution_order.copy()

    @property
    def node_ids(self) -> List[str]:
        """Get all node ids in declaration order."""
        return list(self._nodes.keys())

    def get_node(self, node_id: str) -> Optional[CompiledNode]:
        """Get compiled node by id."""
        return self._nodes.get(node_id)

    def get_start_nodes(self) -> List[str]:
        """Get entry point node ids."""
        return [
            node_id for node_id, node in self._nodes.items()
            if not node.upstream and not node.disabled
        ]

    def mark_running(self, node_id: str) -> None:
        """Mark node as running."""
        if node_id in self._nodes:
            self._nodes[node_id].status = NodeStatus.RUNNING

    def mark_complete(self, node_id: str, result: NodeRunResult) -> None:
        """Mark node as complete with result."""
        if node_id in self._nodes:
            self._nodes[node_id].status = result.status
            self._nodes[node_id].result = result

    def mark_skipped(self, node_id: str) -> None:
        """Mark node as skipped."""
        if node_id in self._nodes:
            self._nodes[node_id].status = NodeStatus.SKIPPED

    def get_input_data(
        self,
        node_id: str,
        completed_results: Dict[str, NodeRunResult],
        initial: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Build the input object for a node.

        Static inputs come first, then `initial` (caller-supplied input
        for this node), then each upstream output in edge order: merged
        into the top level, or placed under the edge's target port.
        """
        node = self._nodes.get(node_id)
        if not node:
            return {}

        inputs: Dict[str, Any] = {**node.inputs, **(initial or {})}
        for edge in node.incoming:
            result = completed_results.get(edge.source)
            if result is None:
                continue
            output = result.output
            if edge.target_port:
                inputs[edge.target_port] = output
            else:
                inputs.update(output)
        return inputs

    def get_results_summary(self) -> Dict[str, Any]:
        """Get summary of execution results."""
        return {
            "workflow_id": self.workflow_id,
            "workflow_name": self.workflow_name,
            "total_nodes": len(self._nodes),
            "status_counts": {
                status.value: sum(1 for n in self._nodes.values() if n.status == status)
                for status in NodeStatus
            },
            "nodes": {
                node_id: {
                    "status": node.status.value,
                    "error": node.result.error if node.result else None,
                }
                for node_id, node in self._nodes.items()
            },
        }


__all__ = [
    "CompiledGraph",
    "CompiledNode",
    "NodeRunResult",
    "NodeStatus",
]
