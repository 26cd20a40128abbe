"""
Core Node Pack - Built-in nodes.

This pack provides:
- text_input: Emit configured text
- json_parser / json_path: Parse and query JSON
- text_template: Fill {{variables}} in a template
- http_request: Single outbound HTTP call
- api_verify: Confirm an API call's side effect
- response_message / api_response_message: Conditional messages
- output: Render the final result
"""

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
from .manifest import MANIFEST, NODE_CLASSES, build_nodes, register_nodes

__all__ = [
    "ApiResponseMessageNode",
    "ApiVerifyNode",
    "HttpRequestNode",
    "JsonParserNode",
    "JsonPathNode",
    "OutputNode",
    "ResponseMessageNode",
    "TextInputNode",
    "TextTemplateNode",
    "MANIFEST",
    "NODE_CLASSES",
    "build_nodes",
    "register_nodes",
]
