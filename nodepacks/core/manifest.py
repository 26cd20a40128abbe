"""
Core Node Pack Manifest - Registration function for entry-points.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from node_registry.models import NodePackManifest
from node_sdk import ActionVerifier, BaseNode, HttpClient, RestRecordLookup

from nodeflow.config import Settings, get_settings

from .nodes import (
    ApiResponseMessageNode,
    ApiVerifyNode,
    HttpRequestNode,
    JsonParserNode,
    JsonPathNode,
    OutputNode,
    ResponseMessageNode,
    TextInputNode,
    TextTemplateNode,
)


MANIFEST = NodePackManifest(
    name="core",
    version="1.0.0",
    description="Built-in input, data, network, verification and message nodes",
    author="nodeflow",
    nodes=[
        "text_input",
        "json_parser",
        "json_path",
        "text_template",
        "http_request",
        "api_verify",
        "response_message",
        "api_response_message",
        "output",
    ],
)


# Node classes by type
NODE_CLASSES = {
    "text_input": TextInputNode,
    "json_parser": JsonParserNode,
    "json_path": JsonPathNode,
    "text_template": TextTemplateNode,
    "http_request": HttpRequestNode,
    "api_verify": ApiVerifyNode,
    "response_message": ResponseMessageNode,
    "api_response_message": ApiResponseMessageNode,
    "output": OutputNode,
}


def build_nodes(
    http_client: HttpClient,
    verifier: ActionVerifier,
    chat_endpoint: str = "/api/chat",
) -> List[BaseNode]:
    """Instantiate the pack's nodes in manifest order."""
    return [
        TextInputNode(),
        JsonParserNode(),
        JsonPathNode(),
        TextTemplateNode(),
        HttpRequestNode(http_client),
        ApiVerifyNode(verifier),
        ResponseMessageNode(),
        ApiResponseMessageNode(http_client, default_endpoint=chat_endpoint),
        OutputNode(),
    ]


def register_nodes(
    http_client: Optional[HttpClient] = None,
    verifier: Optional[ActionVerifier] = None,
    settings: Optional[Settings] = None,
    **_: Any,
) -> Tuple[NodePackManifest, List[BaseNode]]:
    """
    Entry point function for node pack discovery.

    Collaborators not supplied are built from settings.

    Returns tuple of (manifest, nodes).
    """
    settings = settings or get_settings()
    if http_client is None:
        http_client = HttpClient(base_url=settings.api_base_url, timeout_ms=settings.http_timeout_ms)
    if verifier is None:
        verifier = ActionVerifier(
            RestRecordLookup(http_client),
            max_retries=settings.verification_max_retries,
            retry_delay_ms=settings.verification_retry_delay_ms,
        )
    return MANIFEST, build_nodes(http_client, verifier, settings.chat_endpoint)


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "build_nodes",
    "register_nodes",
]
