"""Structured JSON logging with execution context."""
import logging
import sys
from typing import Any, Optional, TextIO

from pythonjsonlogger import jsonlogger

from nodeflow.config import get_settings

CONTEXT_FIELDS = ("execution_id", "workflow_id", "node_type", "node_id")


class ExecutionContextFilter(logging.Filter):
    """Add execution context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add default context fields if not present."""
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, None)
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        # Drop empty context so lines stay short
        for name in CONTEXT_FIELDS:
            if not log_record.get(name):
                log_record.pop(name, None)


def setup_logging(stream: Optional[TextIO] = None) -> None:
    """Configure logging for the application (stdout unless stream is given)."""
    settings = get_settings()

    handler = logging.StreamHandler(stream or sys.stdout)

    if settings.log_json:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    handler.setFormatter(formatter)
    handler.addFilter(ExecutionContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call extra over the adapter's own."""

    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> logging.LoggerAdapter:
    """
    Get a logger with execution context support.

    Args:
        name: Logger name (typically __name__)

    Returns:
        LoggerAdapter that can accept execution context in extra dict
    """
    logger = logging.getLogger(name)
    return ContextLoggerAdapter(logger, extra={})


def with_trace_context(
    execution_id: str | None = None,
    workflow_id: str | None = None,
    node_type: str | None = None,
    node_id: str | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Create an extra dict with execution context for logging.

    Args:
        execution_id: Identifier of a single node invocation
        workflow_id: Workflow the invocation belongs to
        node_type: Node type being executed
        node_id: Node instance within the workflow
        **kwargs: Additional context fields

    Returns:
        Dict to pass as extra parameter to logger methods
    """
    extra = kwargs.copy()
    if execution_id:
        extra["execution_id"] = execution_id
    if workflow_id:
        extra["workflow_id"] = workflow_id
    if node_type:
        extra["node_type"] = node_type
    if node_id:
        extra["node_id"] = node_id
    return extra
