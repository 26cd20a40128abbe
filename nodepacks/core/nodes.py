"""
Core Nodes - Built-in node implementations.

Each node declares its definition and presentation hints as class
attributes and implements run(). Nodes that talk to the network receive
their HttpClient / ActionVerifier through the constructor.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, Optional

from node_registry.models import ConfigOption, NodeDefinition, PortDefinition
from node_sdk import (
    ActionVerifier,
    BaseNode,
    HttpClient,
    MISSING,
    MissingRequiredFieldError,
    NodeOperationError,
    NodeResult,
    VerificationResult,
    interpolate,
    resolve_path,
    stringify_value,
)
from node_sdk.interpolation import placeholders


logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_MESSAGE = "Operation completed successfully!"
DEFAULT_ERROR_MESSAGE = "Operation failed. Please try again."

_INDEX_PATTERN = re.compile(r"\[(\d+)\]")


class TextInputNode(BaseNode):
    """
    Text Input - Emit configured text.

    Typically the entry point of a workflow.
    """

    definition = NodeDefinition(
        type="text_input",
        display_name="Text Input",
        description="Captures text input for use in workflows",
        category="input",
        icon="type",
        outputs={
            "text": PortDefinition(type="string", description="The input text"),
            "output": PortDefinition(type="string", description="Same text, legacy port"),
        },
        config_options=[
            ConfigOption(key="inputText", type="string", default="", description="Text to emit"),
            ConfigOption(
                key="placeholder",
                type="string",
                default="Enter your text here...",
                description="Placeholder shown in the input field",
            ),
        ],
    )
    presentation = {"color": "#4CAF50", "tags": ["input", "text"]}

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> NodeResult:
        text = config.get("inputText") or config.get("inputValue") or ""
        text = str(text)
        return NodeResult.success(
            {"text": text, "output": text},
            message="Text captured",
            source_operation="text_input",
        )


class JsonParserNode(BaseNode):
    """
    JSON Parser - Parse a JSON string into structured data.

    Already-structured input passes through unchanged. With
    returnErrorObject set, a parse failure is reported inside a success
    result instead of failing the node.
    """

    definition = NodeDefinition(
        type="json_parser",
        display_name="JSON Parser",
        description="Parses a JSON string into structured data",
        category="data",
        icon="braces",
        inputs={
            "json_string": PortDefinition(type="string", description="JSON text to parse"),
        },
        outputs={
            "parsed_data": PortDefinition(type="object", description="Parsed value"),
            "error": PortDefinition(type="string", description="Parse error", optional=True),
        },
        config_options=[
            ConfigOption(
                key="returnErrorObject",
                type="boolean",
                default=False,
                description="Return the parse error as data instead of failing",
            ),
        ],
    )
    presentation = {"color": "#FF9800", "tags": ["json", "parse", "data"]}

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> NodeResult:
        raw = inputs.get("json_string", "{}")
        if raw is None or raw == "":
            raw = "{}"

        if not isinstance(raw, (str, bytes)):
            return NodeResult.success({"parsed_data": raw}, source_operation="json_parser")

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            message = f"Invalid JSON: {e}"
            if config.get("returnErrorObject"):
                return NodeResult.success(
                    {"parsed_data": None, "error": message},
                    message=message,
                    source_operation="json_parser",
                )
            raise NodeOperationError(message, node_type=self.node_type) from e

        return NodeResult.success(
            {"parsed_data": parsed},
            message="JSON parsed successfully",
            source_operation="json_parser",
        )


def normalize_json_path(path: Any) -> str:
    """Turn "$.items[0].name" into the dotted form "items.0.name"; "" means the root."""
    text = str(path or "$").strip()
    if text.startswith("$"):
        text = text[1:]
    text = _INDEX_PATTERN.sub(r".\1", text)
    return text.strip(".")


class JsonPathNode(BaseNode):
    """
    JSON Path - Extract a value from structured data.

    Supports dotted paths with a leading "$" and list indexing
    ("$.items[0].name").
    """

    definition = NodeDefinition(
        type="json_path",
        display_name="JSON Path",
        description="Extracts a value from data using a JSON path expression",
        category="data",
        icon="filter",
        inputs={
            "data": PortDefinition(type="object", description="Data to query"),
        },
        outputs={
            "result": PortDefinition(type="any", description="Extracted value"),
        },
        config_options=[
            ConfigOption(key="path", type="string", default="$.data", description="JSON path"),
            ConfigOption(
                key="returnFirst",
                type="boolean",
                default=False,
                description="Return only the first element of a list result",
            ),
            ConfigOption(
                key="defaultValue",
                type="json",
                description="Value returned when the path does not resolve",
            ),
        ],
    )
    presentation = {"color": "#FF9800", "tags": ["json", "path", "extract"]}

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> NodeResult:
        data = inputs.get("data")
        if data is None:
            raise MissingRequiredFieldError("No input data provided", field="data")

        path = normalize_json_path(config.get("path"))
        result = data if not path else resolve_path(data, path)
        if result is MISSING:
            result = config.get("defaultValue")
        elif config.get("returnFirst") and isinstance(result, list):
            result = result[0] if result else config.get("defaultValue")

        return NodeResult.success(
            {"result": result},
            message=f"Extracted {config.get('path') or '$'}",
            source_operation="json_path",
        )


class TextTemplateNode(BaseNode):
    """Text Template - Fill {{variables}} in a template."""

    definition = NodeDefinition(
        type="text_template",
        display_name="Text Template",
        description="Replaces {{variables}} in a template with input values",
        category="text",
        icon="file-text",
        inputs={
            "variables": PortDefinition(type="object", description="Template values", optional=True),
        },
        outputs={
            "text": PortDefinition(type="string", description="Rendered text"),
        },
        config_options=[
            ConfigOption(
                key="template",
                type="string",
                description="Template text with {{path}} placeholders, e.g. \"Hello, {{name}}!\"",
            ),
        ],
    )
    presentation = {"color": "#9C27B0", "tags": ["text", "template", "format"]}

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> NodeResult:
        template = config.get("template")
        if not isinstance(template, str) or not template.strip():
            raise MissingRequiredFieldError("No template provided", field="template")

        variables = inputs.get("variables")
        if not isinstance(variables, Mapping):
            variables = {}

        text = interpolate(template, variables)
        unresolved = placeholders(text)
        if unresolved:
            self.logger.warning(f"Unresolved template variables: {', '.join(unresolved)}")

        return NodeResult.success({"text": text}, source_operation="text_template")


class HttpRequestNode(BaseNode):
    """
    HTTP Request - Single outbound call.

    Node config is the request description; input "body" and "headers"
    come from upstream.
    """

    definition = NodeDefinition(
        type="http_request",
        display_name="HTTP Request",
        description="Makes an HTTP request to an external API",
        category="api",
        icon="globe",
        inputs={
            "body": PortDefinition(type="any", description="Request body", optional=True),
            "headers": PortDefinition(type="object", description="Extra headers", optional=True),
        },
        outputs={
            "status": PortDefinition(type="number", description="Response status code"),
            "headers": PortDefinition(type="object", description="Response headers"),
            "data": PortDefinition(type="any", description="Response body"),
        },
        config_options=[
            ConfigOption(key="url", type="string", default="", description="Request URL"),
            ConfigOption(
                key="method",
                type="select",
                default="GET",
                description="HTTP method",
                options=[{"label": m, "value": m} for m in ("GET", "POST", "PUT", "PATCH", "DELETE")],
            ),
            ConfigOption(
                key="headers",
                type="json",
                default={"Content-Type": "application/json"},
                description="Request headers",
            ),
            ConfigOption(key="body", type="json", default="", description="Default request body"),
            ConfigOption(key="timeout", type="number", description="Timeout (ms); client default when unset"),
        ],
    )
    presentation = {"color": "#2196F3", "tags": ["http", "api", "request"]}

    def __init__(self, client: HttpClient):
        super().__init__()
        self._client = client

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> NodeResult:
        return await self._client.call(config, inputs)


class ApiVerifyNode(BaseNode):
    """
    API Verify - Confirm that an API call actually did what it reported.

    The payload is read from the "response" input if present, otherwise
    from the whole input. A verification mismatch keeps success=True and
    sets error; a missing identifier or a failed lookup sets success=False.
    """

    definition = NodeDefinition(
        type="api_verify",
        display_name="API Verify",
        description="Verifies that an API action took effect in the system of record",
        category="api",
        icon="shield-check",
        inputs={
            "response": PortDefinition(type="object", description="API response to verify"),
        },
        outputs={
            "success": PortDefinition(type="boolean", description="Verification ran"),
            "verified": PortDefinition(type="boolean", description="Side effect observed"),
            "data": PortDefinition(type="any", description="Original response data"),
            "verification": PortDefinition(type="object", description="Verification record"),
            "error": PortDefinition(type="string", description="Failure reason", optional=True),
        },
        config_options=[
            ConfigOption(key="resourceType", type="string", default="agents", description="Resource collection"),
            ConfigOption(key="idField", type="string", default="id", description="Identifier field"),
            ConfigOption(key="maxRetries", type="number", description="Lookup attempts"),
            ConfigOption(key="retryDelay", type="number", description="Delay between attempts (ms)"),
            ConfigOption(
                key="operation",
                type="select",
                default="create",
                description="Action to verify",
                options=[{"label": "Create", "value": "create"}, {"label": "Delete", "value": "delete"}],
            ),
        ],
    )
    presentation = {"color": "#009688", "tags": ["api", "verify", "check"]}

    def __init__(self, verifier: ActionVerifier):
        super().__init__()
        self._verifier = verifier

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> VerificationResult:
        payload = inputs["response"] if "response" in inputs else inputs
        resource_type = config.get("resourceType") or "agents"
        id_field = config.get("idField") or "id"

        try:
            if config.get("operation") == "delete":
                entity_id = payload.get(id_field) if isinstance(payload, Mapping) else None
                record = await self._verifier.verify_deletion(resource_type, entity_id, id_field)
            else:
                record = await self._verifier.verify_creation(
                    payload,
                    resource_type,
                    id_field=id_field,
                    max_retries=_optional_int(config.get("maxRetries")),
                    retry_delay_ms=_optional_int(config.get("retryDelay")),
                )
        except NodeOperationError as e:
            self.logger.warning(f"API verification error: {e.message}")
            return VerificationResult(success=False, verified=False, data=payload, error=e.message)

        return VerificationResult(
            success=True,
            verified=record.verified,
            data=payload,
            verification=record,
            error=None if record.verified else "Resource verification failed",
        )


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def evaluate_condition(config: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Decide success or error for a message node and render the message.

    The condition field is resolved as a dotted path and compared with
    the success value as text, so True matches "true".
    """
    condition_field = config.get("conditionField") or "result"
    success_value = str(config.get("successValue") or "success")
    success_message = config.get("successMessage") or DEFAULT_SUCCESS_MESSAGE
    error_message = config.get("errorMessage") or DEFAULT_ERROR_MESSAGE

    field_value = resolve_path(data, condition_field)
    if field_value is MISSING:
        field_value = None

    # Booleans compare as "true"/"false"
    is_success = field_value is not None and stringify_value(field_value) == success_value

    # Literal "true" condition means "always succeed"
    if condition_field == "true" and success_value == "true":
        is_success = True

    # Workflow trigger output carries no result field
    if data.get("workflowId") and not field_value and condition_field == "result":
        is_success = True

    template = success_message if is_success else error_message
    return {
        "isSuccess": is_success,
        "message": interpolate(template, data),
        "status": "success" if is_success else "error",
        "originalInput": dict(data),
        "conditionField": condition_field,
        "fieldValue": field_value,
        "expectedValue": success_value,
    }


_MESSAGE_OUTPUTS = {
    "isSuccess": PortDefinition(type="boolean", description="Condition outcome"),
    "message": PortDefinition(type="string", description="Rendered message"),
    "status": PortDefinition(type="string", description="success or error"),
    "originalInput": PortDefinition(type="object", description="Input the condition was checked against"),
    "conditionField": PortDefinition(type="string", description="Field that was checked"),
    "fieldValue": PortDefinition(type="any", description="Value found at the field"),
    "expectedValue": PortDefinition(type="string", description="Value required for success"),
}

_MESSAGE_OPTIONS = [
    ConfigOption(key="conditionField", type="string", default="result", description="Field to check"),
    ConfigOption(key="successValue", type="string", default="success", description="Value meaning success"),
    ConfigOption(
        key="successMessage",
        type="string",
        default=DEFAULT_SUCCESS_MESSAGE,
        description="Message on success; supports {{path}}",
    ),
    ConfigOption(
        key="errorMessage",
        type="string",
        default=DEFAULT_ERROR_MESSAGE,
        description="Message on error; supports {{path}}",
    ),
]


class ResponseMessageNode(BaseNode):
    """Response Message - Pick a success or error message from a condition."""

    definition = NodeDefinition(
        type="response_message",
        display_name="Response Message",
        description="Displays conditional success/error messages based on a condition",
        category="actions",
        icon="alert-circle",
        inputs={"default": PortDefinition(type="object", description="Data to check")},
        outputs=_MESSAGE_OUTPUTS,
        config_options=_MESSAGE_OPTIONS,
    )
    presentation = {"color": "#673AB7", "tags": ["message", "condition", "response"]}

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> NodeResult:
        result = evaluate_condition(config, inputs)
        return NodeResult.success(
            result,
            message=result["message"],
            source_operation="response_message",
            output_path=result["status"],
        )


class ApiResponseMessageNode(BaseNode):
    """
    API Response Message - Evaluate a condition, then post the message
    to the chat endpoint.
    """

    definition = NodeDefinition(
        type="api_response_message",
        display_name="API Response Message",
        description="Sends a formatted response message to the chat UI or an API endpoint",
        category="actions",
        icon="message-circle",
        inputs={"default": PortDefinition(type="object", description="Data to check")},
        outputs={
            **_MESSAGE_OUTPUTS,
            "apiResponse": PortDefinition(type="any", description="Endpoint response body"),
        },
        config_options=[
            *_MESSAGE_OPTIONS,
            ConfigOption(key="targetEndpoint", type="string", description="Endpoint receiving the message"),
            ConfigOption(
                key="formatOutput",
                type="boolean",
                default=True,
                description="Send the chat UI message shape",
            ),
            ConfigOption(key="additionalData", type="json", description="Extra payload fields"),
        ],
    )
    presentation = {"color": "#673AB7", "tags": ["message", "api", "chat"]}

    def __init__(self, client: HttpClient, default_endpoint: str = "/api/chat"):
        super().__init__()
        self._client = client
        self._default_endpoint = default_endpoint

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> NodeResult:
        result = evaluate_condition(config, inputs)
        is_success = result["isSuccess"]

        if config.get("formatOutput", True) is not False:
            payload: Dict[str, Any] = {
                "message": result["message"],
                "type": "success" if is_success else "error",
                "origin": "workflow",
            }
        else:
            payload = {"message": result["message"], "status": result["status"]}

        additional = config.get("additionalData")
        if isinstance(additional, Mapping):
            payload.update(additional)

        endpoint = config.get("targetEndpoint") or self._default_endpoint
        response = await self._client.call(
            {
                "url": endpoint,
                "method": "POST",
                "headers": {"Content-Type": "application/json"},
                "body": payload,
            }
        )
        if response.is_error:
            raise NodeOperationError(
                response.error or "Failed to send response message",
                node_type=self.node_type,
                details=response.meta.details,
            )

        return NodeResult.success(
            {**result, "apiResponse": response.data.get("data")},
            message=result["message"],
            source_operation="api_response_message",
            output_path=result["status"],
        )


class OutputNode(BaseNode):
    """Output - Render the incoming value as text."""

    definition = NodeDefinition(
        type="output",
        display_name="Output",
        description="Displays the final result of a workflow",
        category="output",
        icon="monitor",
        inputs={"text": PortDefinition(type="any", description="Value to display")},
        outputs={
            "text": PortDefinition(type="string"),
            "output": PortDefinition(type="string"),
            "result": PortDefinition(type="string"),
        },
    )
    presentation = {"color": "#607D8B", "tags": ["output", "display"]}

    async def run(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> NodeResult:
        text = render_output(inputs)
        return NodeResult.success(
            {"text": text, "output": text, "result": text},
            source_operation="output",
        )


def render_output(inputs: Mapping[str, Any]) -> str:
    """Text of the first input: its text/output field, itself, or pretty JSON."""
    for key in ("text", "output"):
        if isinstance(inputs.get(key), str):
            return inputs[key]
    if not inputs:
        return ""

    first = next(iter(inputs.values()))
    if isinstance(first, Mapping):
        for key in ("text", "output"):
            if isinstance(first.get(key), str):
                return first[key]
    if isinstance(first, str):
        return first
    if first is None:
        return ""
    return json.dumps(first, indent=2, default=str)


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
    "evaluate_condition",
    "normalize_json_path",
    "render_output",
]
