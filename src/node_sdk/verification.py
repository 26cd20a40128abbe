"""
Action Verification - Confirm that a claimed side effect happened.

A 2xx response to "create X" does not prove X exists. ActionVerifier
re-queries the system of record through a RecordLookup, polling at a
fixed interval for a bounded number of attempts. It only reports a
mismatch; deciding what to do about it belongs to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, runtime_checkable
from urllib.parse import quote

from .envelope import VerificationRecord
from .errors import MissingRequiredFieldError, NetworkFailure
from .http import HttpClient


logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000

Sleeper = Callable[[float], Awaitable[Any]]


@runtime_checkable
class RecordLookup(Protocol):
    """Query records of a resource type matching field == value."""

    async def find(self, resource_type: str, field: str, value: Any) -> Optional[Any]:
        """Return the matching entity, or None if it is not there."""
        ...


class RestRecordLookup:
    """
    RecordLookup backed by the application's REST API.

    - field "id": GET /api/<resource_type>/<value>, value percent-encoded
    - other fields: GET /api/<resource_type>?<field>=<value>

    Either way the record only counts when its field matches the value
    (compared as text, so 42 and "42" agree).

    A 404 means "not found"; other failures raise NetworkFailure.
    """

    def __init__(self, client: HttpClient, prefix: str = "/api"):
        self._client = client
        self._prefix = prefix.rstrip("/")

    async def find(self, resource_type: str, field: str, value: Any) -> Optional[Any]:
        if field == "id":
            response = await self._client.request(
                "GET", f"{self._prefix}/{resource_type}/{quote(str(value), safe='')}"
            )
        else:
            response = await self._client.request(
                "GET", f"{self._prefix}/{resource_type}", params={field: value}
            )

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise NetworkFailure(
                message=f"Lookup failed with status code {response.status_code}",
                status_code=response.status_code,
                response_body=response.text[:1000] if response.text else None,
                url=str(response.request.url),
                method="GET",
            )

        try:
            body = response.json()
        except ValueError:
            return None
        return _match(body, field, value)


def _same(found: Any, expected: Any) -> bool:
    # Identifiers round-trip through URLs and query strings as text
    return found is not None and (found == expected or str(found) == str(expected))


def _match(body: Any, field: str, value: Any) -> Optional[Any]:
    """The record in body whose field equals value, or None."""
    if isinstance(body, list):
        for item in body:
            if isinstance(item, Mapping) and _same(item.get(field), value):
                return item
        return None
    if isinstance(body, Mapping) and _same(body.get(field), value):
        return body
    return None


def extract_identifier(payload: Any, id_field: str) -> Any:
    """Pull the candidate identifier out of a response payload, or None."""
    if not isinstance(payload, Mapping):
        return None
    value = payload.get(id_field)
    if value is None or value == "":
        return None
    return value


class ActionVerifier:
    """
    Verify resource creation/deletion against a RecordLookup.

    The retry delay is fixed, not exponential. Sleeping goes through an
    injectable coroutine so tests can run with zero delay.

    Usage:
        verifier = ActionVerifier(RestRecordLookup(client))
        record = await verifier.verify_creation({"id": 42}, "agents")
        if not record.verified:
            ...
    """

    def __init__(
        self,
        lookup: RecordLookup,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS,
        sleep: Optional[Sleeper] = None,
    ):
        self._lookup = lookup
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self._sleep = sleep or asyncio.sleep

    async def verify_creation(
        self,
        response_payload: Any,
        resource_type: str,
        id_field: str = "id",
        max_retries: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
    ) -> VerificationRecord:
        """
        Confirm that the entity named in response_payload exists.

        Args:
            response_payload: Body of the call that claimed to create it
            resource_type: Resource collection to query (e.g. "agents")
            id_field: Field holding the identifier
            max_retries: Attempt budget (defaults to the verifier's)
            retry_delay_ms: Fixed wait between attempts

        Returns:
            VerificationRecord; verified=False with attempts == budget
            when the entity never showed up.

        Raises:
            MissingRequiredFieldError: payload has no identifier; no
                lookup is attempted.
        """
        lookup_value = extract_identifier(response_payload, id_field)
        if lookup_value is None:
            raise MissingRequiredFieldError(
                f"Verification ID not found in input using field: {id_field}",
                field=id_field,
            )

        budget = max(1, max_retries if max_retries is not None else self.max_retries)
        delay_ms = self.retry_delay_ms if retry_delay_ms is None else max(0, retry_delay_ms)
        last_error: Optional[str] = None

        for attempt in range(1, budget + 1):
            try:
                entity = await self._lookup.find(resource_type, id_field, lookup_value)
            except NetworkFailure as e:
                entity = None
                last_error = e.message
                logger.warning(
                    "[verify] Lookup of %s %s=%r failed (%d/%d): %s",
                    resource_type, id_field, lookup_value, attempt, budget, e.message,
                )

            if entity is not None:
                logger.info(
                    "[verify] %s %s=%r confirmed on attempt %d",
                    resource_type, id_field, lookup_value, attempt,
                )
                return VerificationRecord(
                    verified=True,
                    attempts=attempt,
                    resource_type=resource_type,
                    lookup_field=id_field,
                    lookup_value=lookup_value,
                    found_entity=entity,
                    last_error=last_error,
                )

            if attempt < budget:
                await self._sleep(delay_ms / 1000)

        logger.warning(
            "[verify] %s %s=%r not found after %d attempts",
            resource_type, id_field, lookup_value, budget,
        )
        return VerificationRecord(
            verified=False,
            attempts=budget,
            resource_type=resource_type,
            lookup_field=id_field,
            lookup_value=lookup_value,
            last_error=last_error,
        )

    async def verify_deletion(
        self,
        resource_type: str,
        entity_id: Any,
        id_field: str = "id",
    ) -> VerificationRecord:
        """Confirm an entity is gone with a single lookup."""
        if entity_id is None or entity_id == "":
            raise MissingRequiredFieldError(
                f"Verification ID not found in input using field: {id_field}",
                field=id_field,
            )

        entity = await self._lookup.find(resource_type, id_field, entity_id)
        return VerificationRecord(
            verified=entity is None,
            attempts=1,
            resource_type=resource_type,
            lookup_field=id_field,
            lookup_value=entity_id,
            found_entity=entity,
            last_error=None if entity is None else "Resource still exists after deletion",
        )


__all__ = [
    "ActionVerifier",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_DELAY_MS",
    "RecordLookup",
    "RestRecordLookup",
    "extract_identifier",
]
