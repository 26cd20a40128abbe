"""Tests for action verification."""
import asyncio

import httpx
import pytest

from node_sdk.errors import MissingRequiredFieldError, NetworkFailure
from node_sdk.http import HttpClient
from node_sdk.verification import ActionVerifier, RestRecordLookup, extract_identifier


class TestVerifyCreation:
    """Test bounded re-query of the system of record."""

    def test_found_on_third_attempt(self, stub_lookup, no_sleep):
        lookup = stub_lookup([None, None, {"id": 42, "name": "agent"}])
        verifier = ActionVerifier(lookup, max_retries=3, retry_delay_ms=0, sleep=no_sleep)

        record = asyncio.run(verifier.verify_creation({"id": 42}, "agents"))

        assert record.verified is True
        assert record.attempts == 3
        assert record.found_entity == {"id": 42, "name": "agent"}
        assert record.lookup_value == 42
        assert lookup.calls == [("agents", "id", 42)] * 3
        assert no_sleep.delays == [0, 0]

    def test_found_first_time_does_not_sleep(self, stub_lookup, no_sleep):
        lookup = stub_lookup([{"id": 1}])
        verifier = ActionVerifier(lookup, sleep=no_sleep)

        record = asyncio.run(verifier.verify_creation({"id": 1}, "agents"))

        assert record.verified
        assert record.attempts == 1
        assert no_sleep.delays == []

    def test_exhaustion_stops_at_budget(self, stub_lookup, no_sleep):
        lookup = stub_lookup(default=None)
        verifier = ActionVerifier(lookup, max_retries=3, retry_delay_ms=0, sleep=no_sleep)

        record = asyncio.run(verifier.verify_creation({"id": 42}, "agents"))

        assert record.verified is False
        assert record.attempts == 3
        assert record.found_entity is None
        assert len(lookup.calls) == 3
        assert len(no_sleep.delays) == 2

    def test_fixed_delay(self, stub_lookup, no_sleep):
        verifier = ActionVerifier(stub_lookup(), max_retries=4, retry_delay_ms=1500, sleep=no_sleep)

        asyncio.run(verifier.verify_creation({"id": "a"}, "agents"))

        assert no_sleep.delays == [1.5, 1.5, 1.5]

    def test_per_call_overrides(self, stub_lookup, no_sleep):
        lookup = stub_lookup()
        verifier = ActionVerifier(lookup, max_retries=3, retry_delay_ms=1000, sleep=no_sleep)

        record = asyncio.run(
            verifier.verify_creation({"id": 1}, "agents", max_retries=5, retry_delay_ms=0)
        )

        assert record.attempts == 5
        assert no_sleep.delays == [0, 0, 0, 0]

    def test_budget_clamped_to_one(self, stub_lookup, no_sleep):
        lookup = stub_lookup()
        verifier = ActionVerifier(lookup, sleep=no_sleep)

        record = asyncio.run(verifier.verify_creation({"id": 1}, "agents", max_retries=0))

        assert record.attempts == 1
        assert len(lookup.calls) == 1

    @pytest.mark.parametrize("payload", [{}, {"id": None}, {"id": ""}, None, "42"])
    def test_missing_identifier(self, stub_lookup, no_sleep, payload):
        lookup = stub_lookup()
        verifier = ActionVerifier(lookup, sleep=no_sleep)

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            asyncio.run(verifier.verify_creation(payload, "agents"))

        assert "Verification ID not found in input using field: id" in str(exc_info.value)
        assert lookup.calls == []

    def test_zero_is_a_valid_identifier(self, stub_lookup, no_sleep):
        verifier = ActionVerifier(stub_lookup([{"id": 0}]), sleep=no_sleep)

        record = asyncio.run(verifier.verify_creation({"id": 0}, "agents"))

        assert record.verified

    def test_custom_id_field(self, stub_lookup, no_sleep):
        lookup = stub_lookup([{"slug": "bot"}])
        verifier = ActionVerifier(lookup, sleep=no_sleep)

        record = asyncio.run(verifier.verify_creation({"slug": "bot"}, "agents", id_field="slug"))

        assert record.verified
        assert record.lookup_field == "slug"
        assert lookup.calls == [("agents", "slug", "bot")]

    def test_lookup_failure_is_retried_and_recorded(self, stub_lookup, no_sleep):
        lookup = stub_lookup([NetworkFailure("Lookup failed with status code 503", status_code=503), {"id": 9}])
        verifier = ActionVerifier(lookup, max_retries=3, retry_delay_ms=0, sleep=no_sleep)

        record = asyncio.run(verifier.verify_creation({"id": 9}, "agents"))

        assert record.verified
        assert record.attempts == 2
        assert record.last_error == "Lookup failed with status code 503"


class TestVerifyDeletion:
    """Test deletion checks."""

    def test_gone(self, stub_lookup):
        verifier = ActionVerifier(stub_lookup([None]))

        record = asyncio.run(verifier.verify_deletion("agents", 5))

        assert record.verified
        assert record.attempts == 1

    def test_still_present(self, stub_lookup):
        verifier = ActionVerifier(stub_lookup([{"id": 5}]))

        record = asyncio.run(verifier.verify_deletion("agents", 5))

        assert not record.verified
        assert record.found_entity == {"id": 5}
        assert record.last_error == "Resource still exists after deletion"


class TestRestRecordLookup:
    """Test the REST-backed lookup."""

    def _lookup(self, transport_factory, handler):
        transport = transport_factory(handler)
        client = HttpClient(base_url="http://records.test", transport=transport)
        return RestRecordLookup(client), transport

    def test_lookup_by_id(self, transport_factory):
        lookup, transport = self._lookup(
            transport_factory, lambda request: httpx.Response(200, json={"id": 42, "name": "a"})
        )

        entity = asyncio.run(lookup.find("agents", "id", 42))

        assert entity == {"id": 42, "name": "a"}
        assert str(transport.requests[0].url) == "http://records.test/api/agents/42"

    def test_lookup_by_id_matches_text_identifier(self, transport_factory):
        lookup, _ = self._lookup(
            transport_factory, lambda request: httpx.Response(200, json={"id": 42})
        )

        assert asyncio.run(lookup.find("agents", "id", "42")) == {"id": 42}

    def test_different_record_is_not_found(self, transport_factory):
        lookup, _ = self._lookup(
            transport_factory, lambda request: httpx.Response(200, json={"id": 99})
        )

        assert asyncio.run(lookup.find("agents", "id", 42)) is None

    def test_unrelated_body_is_not_found(self, transport_factory):
        lookup, _ = self._lookup(
            transport_factory,
            lambda request: httpx.Response(200, json={"message": "Agent not found"}),
        )

        assert asyncio.run(lookup.find("agents", "id", 42)) is None

    def test_catch_all_response_does_not_verify(self, transport_factory, no_sleep):
        lookup, transport = self._lookup(
            transport_factory, lambda request: httpx.Response(200, json={"id": 99})
        )
        verifier = ActionVerifier(lookup, max_retries=2, retry_delay_ms=0, sleep=no_sleep)

        record = asyncio.run(verifier.verify_creation({"id": 42}, "agents"))

        assert not record.verified
        assert record.attempts == 2
        assert len(transport.requests) == 2

    def test_identifier_is_percent_encoded(self, transport_factory):
        lookup, transport = self._lookup(
            transport_factory, lambda request: httpx.Response(404, json={})
        )

        asyncio.run(lookup.find("agents", "id", "a/b?x=1"))

        url = transport.requests[0].url
        assert url.raw_path == b"/api/agents/a%2Fb%3Fx%3D1"
        assert not url.params

    def test_lookup_by_field_filters_list(self, transport_factory):
        rows = [{"id": 1, "name": "x"}, {"id": 2, "name": "bot"}]
        lookup, transport = self._lookup(
            transport_factory, lambda request: httpx.Response(200, json=rows)
        )

        entity = asyncio.run(lookup.find("agents", "name", "bot"))

        assert entity == {"id": 2, "name": "bot"}
        assert transport.requests[0].url.params["name"] == "bot"

    def test_not_found(self, transport_factory):
        lookup, _ = self._lookup(
            transport_factory, lambda request: httpx.Response(404, json={"error": "nope"})
        )

        assert asyncio.run(lookup.find("agents", "id", 1)) is None

    def test_server_error_raises(self, transport_factory):
        lookup, _ = self._lookup(
            transport_factory, lambda request: httpx.Response(500, text="boom")
        )

        with pytest.raises(NetworkFailure) as exc_info:
            asyncio.run(lookup.find("agents", "id", 1))

        assert exc_info.value.status_code == 500


def test_extract_identifier():
    assert extract_identifier({"id": 3}, "id") == 3
    assert extract_identifier({"id": ""}, "id") is None
    assert extract_identifier(["id"], "id") is None
