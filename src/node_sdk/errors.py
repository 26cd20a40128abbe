"""
Node Errors - Exception taxonomy for the execution runtime.

Executors raise these; BaseNode.execute() and the dispatcher turn them
into error envelopes so nothing crosses the public boundary.
"""

from __future__ import annotations

from typing import Any, Optional


class NodeflowError(Exception):
    """Base class for runtime errors."""


class UnknownNodeTypeError(NodeflowError):
    """Raised when a node type has no registry entry."""

    def __init__(self, node_type: str) -> None:
        self.node_type = node_type
        super().__init__(f"Unknown node type: {node_type}")


class DuplicateNodeTypeError(NodeflowError):
    """Raised when a node type is registered twice."""

    def __init__(self, node_type: str) -> None:
        self.node_type = node_type
        super().__init__(f"Node type already registered: {node_type}")


class RegistryFrozenError(NodeflowError):
    """Raised when registering after bootstrap has frozen the registry."""


class NodeOperationError(NodeflowError):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node_type: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.node_type = node_type
        self.details = details or {}
        super().__init__(message)


class MissingRequiredFieldError(NodeOperationError):
    """A required configuration or input field is absent."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs: Any) -> None:
        self.field = field
        super().__init__(message, **kwargs)


class NetworkFailure(NodeOperationError):
    """Transport failure or non-success status from an outbound request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Any = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.url = url
        self.method = method


class NodeTimeoutError(NetworkFailure):
    """Raised when an outbound request times out."""

    def __init__(self, message: str, timeout_ms: int, url: str) -> None:
        super().__init__(message, url=url)
        self.timeout_ms = timeout_ms


__all__ = [
    "NodeflowError",
    "UnknownNodeTypeError",
    "DuplicateNodeTypeError",
    "RegistryFrozenError",
    "NodeOperationError",
    "MissingRequiredFieldError",
    "NetworkFailure",
    "NodeTimeoutError",
]
