"""Tests for result envelopes."""
import pytest
from pydantic import ValidationError

from node_sdk.envelope import (
    ExecutionMeta,
    ExecutionStatus,
    NodeResult,
    VerificationRecord,
    VerificationResult,
)


class TestNodeResult:
    """Test the meta/items envelope."""

    def test_success_defaults(self):
        result = NodeResult.success({"text": "hi"}, message="done", source_operation="text_input")

        assert result.is_success
        assert not result.is_error
        assert result.error is None
        assert result.meta.status == ExecutionStatus.SUCCESS
        assert result.items[0].json_data == {"text": "hi"}
        assert result.to_output() == {"text": "hi"}

    def test_failure(self):
        result = NodeResult.failure("boom", error_type="NetworkFailure", details={"url": "x"})

        assert result.is_error
        assert result.error == "boom"
        assert result.meta.error_type == "NetworkFailure"
        assert result.items == []

    def test_status_error_requires_message(self):
        meta = ExecutionMeta(status=ExecutionStatus.ERROR)
        with pytest.raises(ValidationError):
            NodeResult(status=ExecutionStatus.ERROR, meta=meta)

    def test_success_rejects_error_message(self):
        meta = ExecutionMeta(status=ExecutionStatus.SUCCESS)
        with pytest.raises(ValidationError):
            NodeResult(status=ExecutionStatus.SUCCESS, error="oops", meta=meta)

    def test_meta_status_must_match(self):
        meta = ExecutionMeta(status=ExecutionStatus.ERROR)
        with pytest.raises(ValidationError):
            NodeResult(status=ExecutionStatus.SUCCESS, meta=meta)

    def test_frozen(self):
        result = NodeResult.success({"a": 1})
        with pytest.raises(ValidationError):
            result.error = "changed"

    def test_to_dict_uses_camel_case(self):
        result = NodeResult.success({"a": 1}, output_path="success")
        data = result.to_dict()

        assert data["status"] == "success"
        assert data["meta"]["outputPath"] == "success"
        assert data["meta"]["startTime"].endswith("Z")
        assert data["items"][0]["json"] == {"a": 1}


class TestVerificationResult:
    """Test the verification envelope."""

    def test_mismatch_keeps_success(self):
        record = VerificationRecord(
            verified=False,
            attempts=3,
            resource_type="agents",
            lookup_field="id",
            lookup_value=42,
        )
        result = VerificationResult(
            success=True,
            verified=False,
            data={"id": 42},
            verification=record,
            error="Resource verification failed",
        )

        assert not result.is_error
        output = result.to_output()
        assert output["verification"]["resourceType"] == "agents"
        assert output["verification"]["lookupValue"] == 42
        assert output["error"] == "Resource verification failed"

    def test_attempts_not_negative(self):
        with pytest.raises(ValidationError):
            VerificationRecord(verified=False, attempts=-1, resource_type="a", lookup_field="id")
