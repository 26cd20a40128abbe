"""
Workflow Executor - Sequential DAG execution engine.

Runs a compiled workflow one node at a time in topological order,
awaiting each node's envelope before dispatching the next.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from nodeflow.observability import get_logger, with_trace_context

from .dispatcher import NodeDispatcher
from .graph import CompiledGraph, CompiledNode, NodeRunResult, NodeStatus
from .models import WorkflowDefinition, parse_workflow


logger = get_logger(__name__)


class WorkflowStatus(str, Enum):
    """Overall workflow execution status."""
    SUCCESS = "success"
    ERROR = "error"
    PARTIAL = "partial"  # Some nodes succeeded, some failed


@dataclass
class WorkflowResult:
    """
    Result of workflow execution.
    """
    workflow_id: str
    workflow_name: str
    status: WorkflowStatus
    node_results: Dict[str, NodeRunResult] = field(default_factory=dict)
    outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    error: Optional[str] = None
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == WorkflowStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == WorkflowStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflowId": self.workflow_id,
            "workflowName": self.workflow_name,
            "status": self.status.value,
            "error": self.error,
            "durationMs": round(self.duration_ms, 3),
            "outputs": self.outputs,
            "nodes": {node_id: r.to_dict() for node_id, r in self.node_results.items()},
        }


class WorkflowExecutor:
    """
    Sequential workflow executor.

    Executes a workflow DAG respecting:
    - Node dependencies (topological order)
    - Error handling (continue_on_fail)
    - Disabled nodes (skip)

    Usage:
        executor = WorkflowExecutor(dispatcher)
        result = await executor.execute(workflow_definition, {"input-1": {"text": "hi"}})
    """

    def __init__(self, dispatcher: NodeDispatcher):
        self._dispatcher = dispatcher

    async def execute(
        self,
        workflow: WorkflowDefinition | Dict[str, Any],
        input_data: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> WorkflowResult:
        """
        Execute a workflow.

        Args:
            workflow: Workflow definition or JSON dict
            input_data: Optional per-node input keyed by node id

        Returns:
            WorkflowResult with execution outcome
        """
        start_time = time.perf_counter()

        source = workflow
        try:
            # ValidationError (duplicate ids, dangling edges) is a ValueError too
            if isinstance(workflow, dict):
                workflow = parse_workflow(workflow)
            graph = CompiledGraph(workflow)
        except ValueError as e:
            if isinstance(source, dict):
                workflow_id, workflow_name = source.get("id"), source.get("name")
            else:
                workflow_id, workflow_name = source.id, source.name
            return WorkflowResult(
                workflow_id=workflow_id or "unknown",
                workflow_name=workflow_name or "Unnamed Workflow",
                status=WorkflowStatus.ERROR,
                error=f"Compilation failed: {e}",
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

        result = await self._execute_graph(graph, input_data or {})
        result.duration_ms = (time.perf_counter() - start_time) * 1000
        return result

    async def _execute_graph(
        self,
        graph: CompiledGraph,
        input_data: Dict[str, Dict[str, Any]],
    ) -> WorkflowResult:
        """Execute compiled graph."""
        results: Dict[str, NodeRunResult] = {}
        has_errors = False

        for node_id in graph.execution_order:
            node = graph.get_node(node_id)
            if node is None or node_id in results:
                continue

            if node.disabled:
                graph.mark_skipped(node_id)
                results[node_id] = NodeRunResult(node_id, node.node_type, NodeStatus.SKIPPED)
                continue

            node_input = graph.get_input_data(node_id, results, input_data.get(node_id))

            graph.mark_running(node_id)
            result = await self._execute_node(graph, node, node_input)
            results[node_id] = result
            graph.mark_complete(node_id, result)

            if result.is_error:
                has_errors = True
                if not node.continue_on_fail:
                    logger.error(
                        f"Node {node_id} failed: {result.error}",
                        extra=with_trace_context(workflow_id=graph.workflow_id, node_id=node_id),
                    )
                    self._mark_downstream_skipped(graph, node_id, results)

        if has_errors:
            success_count = sum(1 for r in results.values() if r.is_success)
            status = WorkflowStatus.PARTIAL if success_count else WorkflowStatus.ERROR
        else:
            status = WorkflowStatus.SUCCESS

        error_msg = next((r.error for r in results.values() if r.is_error), None)

        return WorkflowResult(
            workflow_id=graph.workflow_id,
            workflow_name=graph.workflow_name,
            status=status,
            node_results=results,
            outputs=self._collect_output(graph, results),
            error=error_msg,
        )

    async def _execute_node(
        self,
        graph: CompiledGraph,
        node: CompiledNode,
        inputs: Dict[str, Any],
    ) -> NodeRunResult:
        """Execute a single node through the dispatcher."""
        start_time = time.perf_counter()
        envelope = await self._dispatcher.execute(
            node.node_type,
            node.config,
            inputs,
            node_id=node.id,
            workflow_id=graph.workflow_id,
        )
        duration = (time.perf_counter() - start_time) * 1000

        error = envelope.error if envelope.is_error else None
        return NodeRunResult(
            node_id=node.id,
            node_type=node.node_type,
            status=NodeStatus.ERROR if envelope.is_error else NodeStatus.SUCCESS,
            envelope=envelope,
            error=error,
            duration_ms=duration,
        )

    def _mark_downstream_skipped(
        self,
        graph: CompiledGraph,
        failed_node: str,
        results: Dict[str, NodeRunResult],
    ) -> None:
        """Mark all downstream nodes as skipped after a failure."""
        failed = graph.get_node(failed_node)
        queue = list(failed.downstream if failed else [])

        while queue:
            node_id = queue.pop(0)
            if node_id in results:
                continue
            node = graph.get_node(node_id)
            if node is None:
                continue
            graph.mark_skipped(node_id)
            results[node_id] = NodeRunResult(node_id, node.node_type, NodeStatus.SKIPPED)
            queue.extend(node.downstream)

    def _collect_output(
        self,
        graph: CompiledGraph,
        results: Dict[str, NodeRunResult],
    ) -> Dict[str, Dict[str, Any]]:
        """Collect output from successful terminal nodes."""
        output: Dict[str, Dict[str, Any]] = {}
        for node_id in graph.node_ids:
            node = graph.get_node(node_id)
            if node is None or node.downstream:
                continue
            result = results.get(node_id)
            if result is not None and result.is_success:
                output[node_id] = result.output
        return output


__all__ = [
    "WorkflowExecutor",
    "WorkflowResult",
    "WorkflowStatus",
]
