"""
Bootstrap - Build the registry and dispatcher once at startup.

The registry is populated here and frozen before it is handed out.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

import httpx

from node_registry import NodeRegistry
from node_sdk import ActionVerifier, HttpClient, RecordLookup, RestRecordLookup
from nodepacks.core import register_nodes
from workflow_runtime import NodeDispatcher, WorkflowExecutor

from nodeflow.config import Settings, get_settings
from nodeflow.observability import get_logger


logger = get_logger(__name__)


def build_registry(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    lookup: Optional[RecordLookup] = None,
    sleep: Optional[Callable[[float], Awaitable[object]]] = None,
    discover: bool = False,
) -> NodeRegistry:
    """
    Build and freeze a registry holding the core pack.

    Args:
        settings: Settings to use (defaults to get_settings())
        transport: httpx transport for all outbound calls (tests pass a MockTransport)
        lookup: Record lookup for verification (defaults to the REST API)
        sleep: Sleep coroutine for verification retries
        discover: Also load third-party packs from entry points
    """
    settings = settings or get_settings()

    http_client = HttpClient(
        base_url=settings.api_base_url,
        timeout_ms=settings.http_timeout_ms,
        transport=transport,
    )
    verifier = ActionVerifier(
        lookup or RestRecordLookup(http_client),
        max_retries=settings.verification_max_retries,
        retry_delay_ms=settings.verification_retry_delay_ms,
        sleep=sleep,
    )

    registry = NodeRegistry()
    manifest, nodes = register_nodes(http_client=http_client, verifier=verifier, settings=settings)
    registry.register_pack(manifest, nodes)

    if discover:
        registry.discover_entry_points(http_client=http_client, verifier=verifier, settings=settings)

    registry.freeze()
    logger.info(f"Registry ready with {len(registry)} node types")
    return registry


def build_dispatcher(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
) -> NodeDispatcher:
    """Dispatcher over a freshly built registry."""
    return NodeDispatcher(build_registry(settings, transport=transport, **kwargs))


def build_workflow_executor(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
) -> WorkflowExecutor:
    """Workflow executor over a freshly built dispatcher."""
    return WorkflowExecutor(build_dispatcher(settings, transport=transport, **kwargs))


__all__ = [
    "build_dispatcher",
    "build_registry",
    "build_workflow_executor",
]
