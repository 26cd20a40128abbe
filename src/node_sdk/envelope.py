"""
Result Envelopes - The uniform return shape of every node execution.

Two shapes exist:
- NodeResult: status/data/error plus a meta block and output items,
  used by generic executors.
- VerificationResult: success/verified/data/verification/error,
  used by verification-aware executors.

Both are frozen snapshots built fresh per invocation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .items import NodeItem


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ExecutionStatus(str, Enum):
    """Envelope status discriminator."""
    SUCCESS = "success"
    ERROR = "error"


class ExecutionMeta(BaseModel):
    """Diagnostic metadata attached to a NodeResult."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: ExecutionStatus
    message: str = ""
    start_time: str = Field(default_factory=utc_now_iso, alias="startTime")
    end_time: str = Field(default_factory=utc_now_iso, alias="endTime")
    source_operation: Optional[str] = Field(None, alias="sourceOperation")
    output_path: Optional[str] = Field(None, alias="outputPath")
    error_type: Optional[str] = Field(None, alias="errorType")
    details: Dict[str, Any] = Field(default_factory=dict)


class Envelope(BaseModel):
    """Common base for result envelopes."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def is_error(self) -> bool:
        raise NotImplementedError

    def to_output(self) -> Dict[str, Any]:
        """Data handed to downstream nodes."""
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the UI expects."""
        return self.model_dump(mode="json", by_alias=True)


class NodeResult(Envelope):
    """
    Meta/items envelope.

    Invariant: status is ERROR if and only if error is set.
    """

    status: ExecutionStatus
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    meta: ExecutionMeta
    items: List[NodeItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_status(self) -> "NodeResult":
        if (self.status == ExecutionStatus.ERROR) != (self.error is not None):
            raise ValueError("status must be 'error' exactly when error is set")
        if self.meta.status != self.status:
            raise ValueError("meta.status must match status")
        return self

    @classmethod
    def success(
        cls,
        data: Optional[Dict[str, Any]] = None,
        message: str = "",
        start_time: Optional[str] = None,
        source_operation: Optional[str] = None,
        output_path: Optional[str] = None,
        items: Optional[List[NodeItem]] = None,
    ) -> "NodeResult":
        """Build a success envelope; items default to a single item of data."""
        data = dict(data or {})
        meta = ExecutionMeta(
            status=ExecutionStatus.SUCCESS,
            message=message,
            start_time=start_time or utc_now_iso(),
            end_time=utc_now_iso(),
            source_operation=source_operation,
            output_path=output_path,
        )
        if items is None:
            items = [NodeItem(json_data=data, source=source_operation)]
        return cls(status=ExecutionStatus.SUCCESS, data=data, meta=meta, items=items)

    @classmethod
    def failure(
        cls,
        message: str,
        start_time: Optional[str] = None,
        error_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        source_operation: Optional[str] = None,
    ) -> "NodeResult":
        """Build an error envelope."""
        meta = ExecutionMeta(
            status=ExecutionStatus.ERROR,
            message=message,
            start_time=start_time or utc_now_iso(),
            end_time=utc_now_iso(),
            source_operation=source_operation,
            error_type=error_type,
            details=details or {},
        )
        return cls(
            status=ExecutionStatus.ERROR,
            data=dict(data or {}),
            error=message,
            meta=meta,
        )

    @property
    def is_error(self) -> bool:
        return self.status == ExecutionStatus.ERROR

    @property
    def is_success(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    def to_output(self) -> Dict[str, Any]:
        return dict(self.data)


class VerificationRecord(BaseModel):
    """Outcome of re-querying the system of record."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    verified: bool
    attempts: int = Field(..., ge=0)
    resource_type: str = Field(..., alias="resourceType")
    lookup_field: str = Field(..., alias="lookupField")
    lookup_value: Any = Field(None, alias="lookupValue")
    found_entity: Any = Field(None, alias="foundEntity")
    last_error: Optional[str] = Field(None, alias="lastError")


class VerificationResult(Envelope):
    """
    Verification envelope.

    `success` reports whether the wrapped operation ran; `verified`
    reports whether its side effect was observed. A mismatch leaves
    success True with error set.
    """

    success: bool
    verified: bool = False
    data: Any = None
    verification: Optional[VerificationRecord] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return not self.success

    def to_output(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


AnyEnvelope = Union[NodeResult, VerificationResult]


__all__ = [
    "AnyEnvelope",
    "Envelope",
    "ExecutionMeta",
    "ExecutionStatus",
    "NodeResult",
    "VerificationRecord",
    "VerificationResult",
    "utc_now_iso",
]
