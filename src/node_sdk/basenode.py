"""
BaseNode - Abstract base class for node executors.

A node type is a definition plus an executor. Subclasses declare
`definition` (and optionally `presentation`) as class attributes and
implement run(). execute() is the executor contract the dispatcher
calls: it times the run and turns NodeOperationError into an error
envelope. Anything else is left for the dispatcher to catch.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol, Union, runtime_checkable

from .envelope import AnyEnvelope, NodeResult, utc_now_iso
from .errors import MissingRequiredFieldError, NetworkFailure, NodeOperationError


logger = logging.getLogger(__name__)

ExecutorReturn = Union[AnyEnvelope, Mapping[str, Any]]


@runtime_checkable
class NodeExecutor(Protocol):
    """Anything with execute(config, inputs) returning an envelope (maybe awaitable)."""

    def execute(
        self,
        config: Dict[str, Any],
        inputs: Dict[str, Any],
    ) -> Union[ExecutorReturn, Awaitable[ExecutorReturn]]:
        ...


class FunctionExecutor:
    """Adapt a plain (async or sync) function to the executor interface."""

    def __init__(self, fn: Callable[[Dict[str, Any], Dict[str, Any]], Any]):
        self._fn = fn

    def execute(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> Any:
        return self._fn(config, inputs)

    def __repr__(self) -> str:
        return f"FunctionExecutor({getattr(self._fn, '__name__', self._fn)!r})"


def error_type_of(error: NodeOperationError) -> str:
    """Name used in meta.errorType for an operation error."""
    if isinstance(error, MissingRequiredFieldError):
        return "MissingRequiredField"
    if isinstance(error, NetworkFailure):
        return "NetworkFailure"
    return "NodeOperationError"


class BaseNode(ABC):
    """
    Abstract base class for all node implementations.

    Example:

        class UppercaseNode(BaseNode):
            definition = NodeDefinition(
                type="uppercase",
                display_name="Uppercase",
                category="text",
                inputs={"text": PortDefinition(type="string")},
                outputs={"text": PortDefinition(type="string")},
            )

            async def run(self, config, inputs):
                text = inputs.get("text")
                if text is None:
                    raise MissingRequiredFieldError("No text provided", field="text")
                return NodeResult.success({"text": text.upper()})
    """

    # Set by subclasses; typed loosely to avoid importing node_registry here
    definition: Any = None
    presentation: Optional[Dict[str, Any]] = None

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"node.{self.node_type}")

    @property
    def node_type(self) -> str:
        if self.definition is None:
            return type(self).__name__.lower()
        return self.definition.node_type

    @abstractmethod
    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> AnyEnvelope:
        """
        Execute node operation.

        Raises:
            NodeOperationError: On operation failure; converted to an
                error envelope by execute()
        """
        raise NotImplementedError

    async def execute(
        self,
        config: Optional[Dict[str, Any]] = None,
        inputs: Optional[Dict[str, Any]] = None,
    ) -> AnyEnvelope:
        """Run with defaults applied, converting operation errors to envelopes."""
        start_time = utc_now_iso()
        merged = self.resolve_config(config)
        try:
            return await self.run(merged, dict(inputs or {}))
        except NodeOperationError as e:
            self.logger.warning(f"{self.node_type} failed: {e.message}")
            return NodeResult.failure(
                e.message,
                start_time=start_time,
                error_type=error_type_of(e),
                details=e.details,
                source_operation=f"{self.node_type}_error",
            )

    def resolve_config(self, config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Overlay config on the definition's default configuration."""
        defaults: Dict[str, Any] = {}
        if self.definition is not None:
            defaults = dict(self.definition.default_config)
        return {**defaults, **dict(config or {})}


__all__ = [
    "BaseNode",
    "ExecutorReturn",
    "FunctionExecutor",
    "NodeExecutor",
    "error_type_of",
]
