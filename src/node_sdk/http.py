"""
HTTP Client - Timeout-bounded outbound requests for nodes.

Every request carries an explicit timeout. call() performs exactly one
attempt and folds both success and failure into a NodeResult envelope;
retrying is left to callers that need it (see verification).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .envelope import NodeResult, utc_now_iso
from .errors import MissingRequiredFieldError, NetworkFailure, NodeTimeoutError


logger = logging.getLogger(__name__)

# Default timeout in milliseconds
DEFAULT_TIMEOUT_MS = 10000

BODYLESS_METHODS = frozenset({"GET", "HEAD"})


class HttpRequestSpec(BaseModel):
    """
    Description of a single outbound request.

    Accepts the camelCase keys stored in node configuration.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: Optional[str] = Field(None, description="Absolute URL or path relative to base_url")
    method: str = Field("GET", description="HTTP method")
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = Field(None, description="Default body, overridden by input body")
    timeout_ms: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("timeoutMs", "timeout_ms", "timeout"),
        gt=0,
    )
    raise_for_status: bool = Field(
        True,
        validation_alias=AliasChoices("raiseForStatus", "raise_for_status"),
        description="Treat non-2xx responses as failures",
    )

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> str:
        return str(v or "GET").upper()

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> Dict[str, str]:
        if not v:
            return {}
        if not isinstance(v, Mapping):
            raise ValueError("headers must be an object")
        return {str(k): str(val) for k, val in v.items()}

    @field_validator("timeout_ms", mode="before")
    @classmethod
    def default_timeout(cls, v: Any) -> Any:
        # Unset or zero timeouts in stored configs mean "use the client default"
        return v or None


def has_json_content_type(headers: Mapping[str, str]) -> bool:
    """True if headers declare a JSON content type (case-insensitive name)."""
    for name, value in headers.items():
        if name.lower() == "content-type" and "application/json" in str(value).lower():
            return True
    return False


def _decode_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type.lower():
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


class HttpClient:
    """
    Async HTTP client with timeout enforcement.

    Usage:
        client = HttpClient(base_url="https://api.example.com")
        result = await client.call({"url": "/users", "method": "GET"})
        if result.is_success:
            users = result.data["data"]
    """

    def __init__(
        self,
        base_url: str = "",
        default_headers: Optional[Dict[str, str]] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Prefix for relative URLs
            default_headers: Headers sent with every request (lowest precedence)
            timeout_ms: Default timeout when a spec does not set one
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.headers: Dict[str, str] = dict(default_headers or {})
        self.timeout_ms = timeout_ms
        self._transport = transport

    def resolve_url(self, url: str) -> str:
        """Prefix relative paths with base_url."""
        if url.startswith(("http://", "https://")) or not self.base_url:
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        content: Optional[str | bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout_ms: Optional[int] = None,
    ) -> httpx.Response:
        """
        Make one HTTP request with timeout enforcement.

        Returns the raw response whatever its status.

        Raises:
            NodeTimeoutError: If the request times out
            NetworkFailure: On transport errors
        """
        full_url = self.resolve_url(url)
        request_headers = {**self.headers, **(headers or {})}
        request_timeout = timeout_ms or self.timeout_ms

        kwargs: Dict[str, Any] = {"params": params, "headers": request_headers}
        if content is not None:
            kwargs["content"] = content
        elif json_body is not None:
            kwargs["json"] = json_body

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=request_timeout / 1000,
            ) as client:
                return await client.request(method, full_url, **kwargs)
        except httpx.TimeoutException as e:
            raise NodeTimeoutError(
                message=f"Request timed out after {request_timeout}ms",
                timeout_ms=request_timeout,
                url=full_url,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkFailure(
                message=f"Request failed: {e}",
                url=full_url,
                method=method,
            ) from e

    def _prepare_body(
        self,
        spec: HttpRequestSpec,
        headers: Dict[str, str],
        inputs: Mapping[str, Any],
    ) -> tuple[Any, Optional[str | bytes]]:
        """Return (json_body, raw_content); at most one is set."""
        if spec.method in BODYLESS_METHODS:
            return None, None

        body = inputs.get("body")
        if body is None or body == "":
            body = spec.body
        if body is None or body == "":
            return None, None

        if isinstance(body, str) and has_json_content_type(headers):
            try:
                return json.loads(body), None
            except ValueError:
                return None, body
        if isinstance(body, (str, bytes)):
            return None, body
        return body, None

    async def call(
        self,
        spec: HttpRequestSpec | Mapping[str, Any],
        inputs: Optional[Mapping[str, Any]] = None,
    ) -> NodeResult:
        """
        Perform a single request described by spec.

        Args:
            spec: Request description (model or config mapping)
            inputs: Upstream input; may carry "headers" and "body"

        Returns:
            Success envelope with status/headers/data, or an error
            envelope carrying the upstream status and body when known.
        """
        start_time = utc_now_iso()
        inputs = inputs or {}

        try:
            if not isinstance(spec, HttpRequestSpec):
                spec = HttpRequestSpec.model_validate(dict(spec))
            if not spec.url:
                raise MissingRequiredFieldError("URL is required", field="url")

            input_headers = inputs.get("headers")
            if not isinstance(input_headers, Mapping):
                input_headers = {}
            headers = {**{str(k): str(v) for k, v in input_headers.items()}, **spec.headers}
            json_body, content = self._prepare_body(spec, headers, inputs)

            logger.info(f"Executing HTTP request: {spec.method} {spec.url}")
            response = await self.request(
                spec.method,
                spec.url,
                json_body=json_body,
                content=content,
                headers=headers,
                timeout_ms=spec.timeout_ms,
            )
            body = _decode_body(response)

            if spec.raise_for_status and not response.is_success:
                raise NetworkFailure(
                    message=f"Request failed with status code {response.status_code}",
                    status_code=response.status_code,
                    response_body=body,
                    url=str(response.request.url),
                    method=spec.method,
                )

            return NodeResult.success(
                data={
                    "status": response.status_code,
                    "headers": dict(response.headers),
                    "data": body,
                },
                message=f"HTTP {spec.method} request completed successfully",
                start_time=start_time,
                source_operation="http_request",
            )

        except ValidationError as e:
            return NodeResult.failure(
                f"Invalid request configuration: {e.errors()[0]['msg']}",
                start_time=start_time,
                error_type="InvalidConfiguration",
                source_operation="http_request",
            )
        except MissingRequiredFieldError as e:
            return NodeResult.failure(
                e.message,
                start_time=start_time,
                error_type="MissingRequiredField",
                source_operation="http_request",
            )
        except NetworkFailure as e:
            details: Dict[str, Any] = {"url": e.url}
            if e.status_code is not None:
                details["response"] = {
                    "status": e.status_code,
                    "statusText": httpx.codes.get_reason_phrase(e.status_code),
                    "data": e.response_body,
                }
            logger.warning(f"HTTP request failed: {e.message}")
            return NodeResult.failure(
                e.message,
                start_time=start_time,
                error_type="NetworkFailure",
                details=details,
                source_operation="http_request",
            )


__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "HttpClient",
    "HttpRequestSpec",
    "has_json_content_type",
]
