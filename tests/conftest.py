"""
Shared test fixtures for canvas-mcp tests.
Patches the config module so no test reads a real .env or reaches Canvas.
"""

import os
import sys

import pytest

# Add project root to path so imports work without installation
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean, deterministic config state."""
    from canvas_mcp import config

    monkeypatch.setattr(config, "env", {})
    monkeypatch.setattr(config, "API_TOKEN", "fake-token-123456")
    monkeypatch.setattr(config, "DOMAIN", "school.instructure.com")
    monkeypatch.setattr(config, "HTTP_TIMEOUT_SECONDS", 30)
    monkeypatch.setattr(config, "HTTP_MAX_RETRIES", 0)
    monkeypatch.setattr(config, "HTTP_RETRY_BASE_SECONDS", 0.0)
    monkeypatch.setattr(config, "HTTP_MAX_RESPONSE_BYTES", 5_000_000)
    monkeypatch.setattr(config, "MAX_PAGES", 500)
    monkeypatch.setattr(config, "HTTP_LOG_ENABLED", False)
    monkeypatch.setattr(config, "HTTP_LOG_SAMPLE_RATE", 1.0)


class FakeChannel:
    """Stand-in for api.Channel that serves canned Responses keyed by URL.

    Records every (method, url, params, data) call so tests can assert on
    the exact HTTP traffic a client method produced.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def request(self, method, path_or_url, *, params=None, data=None):
        self.calls.append((method, path_or_url, params, data))
        route = self.routes.get((method, path_or_url))
        if route is None:
            route = self.routes.get(path_or_url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            raise AssertionError(f"Unexpected request: {method} {path_or_url}")
        return route


@pytest.fixture
def fake_channel():
    return FakeChannel()
