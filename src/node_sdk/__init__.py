"""
Node SDK - Building blocks for node executors.

This package provides:
- NodeResult / VerificationResult: result envelopes
- BaseNode: abstract base class for node executors
- interpolate / resolve_path: {{path}} template substitution
- HttpClient: single-attempt, timeout-bounded outbound requests
- ActionVerifier: bounded re-query of the system of record

All I/O is async; executions are independent asyncio tasks.
"""

from .items import NodeItem
from .envelope import (
    AnyEnvelope,
    Envelope,
    ExecutionMeta,
    ExecutionStatus,
    NodeResult,
    VerificationRecord,
    VerificationResult,
)
from .errors import (
    DuplicateNodeTypeError,
    MissingRequiredFieldError,
    NetworkFailure,
    NodeflowError,
    NodeOperationError,
    NodeTimeoutError,
    RegistryFrozenError,
    UnknownNodeTypeError,
)
from .basenode import BaseNode, FunctionExecutor, NodeExecutor
from .interpolation import MISSING, interpolate, resolve_path, stringify_value
from .http import HttpClient, HttpRequestSpec
from .verification import ActionVerifier, RecordLookup, RestRecordLookup

__all__ = [
    # Items
    "NodeItem",
    # Envelopes
    "AnyEnvelope",
    "Envelope",
    "ExecutionMeta",
    "ExecutionStatus",
    "NodeResult",
    "VerificationRecord",
    "VerificationResult",
    # Executors
    "BaseNode",
    "FunctionExecutor",
    "NodeExecutor",
    # Interpolation
    "MISSING",
    "interpolate",
    "resolve_path",
    "stringify_value",
    # HTTP
    "HttpClient",
    "HttpRequestSpec",
    # Verification
    "ActionVerifier",
    "RecordLookup",
    "RestRecordLookup",
    # Errors
    "DuplicateNodeTypeError",
    "MissingRequiredFieldError",
    "NetworkFailure",
    "NodeflowError",
    "NodeOperationError",
    "NodeTimeoutError",
    "RegistryFrozenError",
    "UnknownNodeTypeError",
]
