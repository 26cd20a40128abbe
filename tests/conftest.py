"""Pytest configuration and fixtures."""
import logging
import os

import httpx
import pytest

# Set test environment variables
os.environ["NODEFLOW_ENV"] = "test"
os.environ["NODEFLOW_API_BASE_URL"] = "http://records.test"
os.environ["NODEFLOW_VERIFICATION_RETRY_DELAY_MS"] = "0"
os.environ["NODEFLOW_LOG_JSON"] = "true"


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the cached settings around every test."""
    from nodeflow.config import reset_settings

    reset_settings()
    yield
    reset_settings()


class StubLookup:
    """RecordLookup returning scripted outcomes, one per call."""

    def __init__(self, outcomes=None, default=None):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.calls = []

    async def find(self, resource_type, field, value):
        self.calls.append((resource_type, field, value))
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    """Sleep replacement that records requested delays and returns at once."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler=None):
        self.requests = []

        def _handle(request):
            self.requests.append(request)
            if handler is None:
                return httpx.Response(404, json={"error": "not found"})
            return handler(request)

        super().__init__(_handle)


@pytest.fixture
def stub_lookup():
    """Factory for StubLookup."""
    return StubLookup


@pytest.fixture
def no_sleep():
    return RecordingSleep()


@pytest.fixture
def transport_factory():
    """Factory for RecordingTransport(handler)."""
    return RecordingTransport


@pytest.fixture
def build_test_dispatcher(no_sleep):
    """Build a dispatcher over the core pack with faked I/O."""
    from nodeflow.bootstrap import build_dispatcher
    from nodeflow.config import get_settings

    def _build(handler=None, lookup=None, transport=None):
        transport = transport or RecordingTransport(handler)
        return build_dispatcher(get_settings(), transport=transport, lookup=lookup, sleep=no_sleep)

    return _build


@pytest.fixture
def captured_root():
    """Restore root logger handlers after setup_logging() replaces them."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
