"""
Workflow Runtime - Node dispatch and sequential DAG execution.

This package provides:
- NodeDispatcher: execute(node_type, config, inputs) -> envelope
- WorkflowDefinition: JSON structure describing a workflow
- CompiledGraph: Executable workflow DAG
- WorkflowExecutor: Sequential execution engine

Nodes run one at a time; each envelope is awaited before the next
node is dispatched.
"""

from .dispatcher import NodeDispatcher
from .models import WorkflowDefinition, WorkflowEdge, WorkflowNode, parse_workflow
from .graph import CompiledGraph, NodeRunResult, NodeStatus
from .executor import WorkflowExecutor, WorkflowResult, WorkflowStatus

__all__ = [
    # Dispatch
    "NodeDispatcher",
    # Models
    "WorkflowDefinition",
    "WorkflowEdge",
    "WorkflowNode",
    "parse_workflow",
    # Graph
    "CompiledGraph",
    "NodeRunResult",
    "NodeStatus",
    # Executor
    "WorkflowExecutor",
    "WorkflowResult",
    "WorkflowStatus",
]
