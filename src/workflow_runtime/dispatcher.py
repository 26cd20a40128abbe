"""
Execution Dispatcher - The single entry point for running a node.

execute(node_type, config, inputs) looks the type up in the registry,
invokes its executor and always returns an envelope. Unknown types and
executor exceptions come back as error envelopes; nothing raises past
this boundary.
"""

from __future__ import annotations

import inspect
import time
import uuid
from collections.abc import Mapping
from typing import Any, Dict, Optional

from node_registry import NodeRegistry
from node_sdk.envelope import AnyEnvelope, Envelope, NodeResult, utc_now_iso
from node_sdk.errors import UnknownNodeTypeError

from nodeflow.observability import get_logger, with_trace_context


logger = get_logger(__name__)


class NodeDispatcher:
    """
    Dispatch node executions through a registry.

    Usage:
        dispatcher = NodeDispatcher(registry)
        result = await dispatcher.execute("json_parser", {}, {"json_string": "{}"})
    """

    def __init__(self, registry: NodeRegistry):
        self._registry = registry

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    async def execute(
        self,
        node_type: str,
        config: Optional[Dict[str, Any]] = None,
        inputs: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
    ) -> AnyEnvelope:
        """
        Execute a node of the given type.

        Args:
            node_type: Registered node type
            config: Node configuration
            inputs: Input object produced by upstream nodes
            node_id: Node instance id, for log context only
            workflow_id: Workflow id, for log context only

        Returns:
            Result envelope (success or error)
        """
        start_time = utc_now_iso()
        started = time.perf_counter()
        extra = with_trace_context(
            execution_id=str(uuid.uuid4()),
            workflow_id=workflow_id,
            node_type=node_type,
            node_id=node_id,
        )

        entry = self._registry.lookup(node_type)
        if entry is None:
            error = UnknownNodeTypeError(node_type)
            logger.warning(str(error), extra=extra)
            return NodeResult.failure(
                str(error),
                start_time=start_time,
                error_type="UnknownNodeType",
                details={"nodeType": node_type},
            )

        logger.info(f"Executing node: {node_type}", extra=extra)
        try:
            outcome = entry.executor.execute(dict(config or {}), dict(inputs or {}))
            if inspect.isawaitable(outcome):
                outcome = await outcome
            result = self._coerce(outcome, start_time, node_type)
        except Exception as e:
            logger.exception(f"Node {node_type} raised: {e}", extra=extra)
            result = NodeResult.failure(
                str(e) or type(e).__name__,
                start_time=start_time,
                error_type=type(e).__name__,
                source_operation=f"{node_type}_error",
            )

        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Node {node_type} finished: {'error' if result.is_error else 'success'}",
            extra={**extra, "duration_ms": round(duration_ms, 3)},
        )
        return result

    @staticmethod
    def _coerce(outcome: Any, start_time: str, node_type: str) -> AnyEnvelope:
        """Accept envelopes as-is; wrap plain mappings as success."""
        if isinstance(outcome, Envelope):
            return outcome
        if isinstance(outcome, Mapping):
            return NodeResult.success(
                dict(outcome),
                start_time=start_time,
                source_operation=node_type,
            )
        raise TypeError(
            f"Executor for '{node_type}' returned {type(outcome).__name__}, expected an envelope"
        )


__all__ = ["NodeDispatcher"]
