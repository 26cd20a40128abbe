"""Tests for structured logging."""
import io
import json
import logging

from nodeflow.observability import get_logger, setup_logging, with_trace_context


class TestWithTraceContext:
    """Test extra dict construction."""

    def test_drops_empty_fields(self):
        extra = with_trace_context(node_type="json_parser", node_id=None, attempt=2)
        assert extra == {"node_type": "json_parser", "attempt": 2}

    def test_all_fields(self):
        extra = with_trace_context(
            execution_id="e1", workflow_id="w1", node_type="t", node_id="n1"
        )
        assert extra == {
            "execution_id": "e1",
            "workflow_id": "w1",
            "node_type": "t",
            "node_id": "n1",
        }


class TestJsonLogging:
    """Test JSON output."""

    def test_json_line_with_context(self, captured_root):
        stream = io.StringIO()
        setup_logging(stream=stream)

        get_logger("nodeflow.test").info(
            "Executing node: echo",
            extra=with_trace_context(node_type="echo", execution_id="abc"),
        )

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["message"] == "Executing node: echo"
        assert record["level"] == "INFO"
        assert record["logger"] == "nodeflow.test"
        assert record["node_type"] == "echo"
        assert record["execution_id"] == "abc"
        assert record["timestamp"]
        assert "workflow_id" not in record

    def test_plain_text_when_json_disabled(self, captured_root, monkeypatch):
        monkeypatch.setenv("NODEFLOW_LOG_JSON", "false")
        stream = io.StringIO()
        setup_logging(stream=stream)

        logging.getLogger("nodeflow.test").warning("plain line")

        line = stream.getvalue().strip()
        assert "WARNING [nodeflow.test] plain line" in line
