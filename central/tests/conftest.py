"""Pytest configuration and fixtures."""

from unittest.mock import MagicMock

import pytest
from starlette.requests import Request

from central.errors import ErrorTranslator


def build_request(path: str = "/test", headers: dict[str, str] | None = None) -> Request:
    """Build a bare Starlette request for code that only reads path and headers."""
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "query_string": b"",
        "headers": raw_headers,
    }
    return Request(scope)


@pytest.fixture
def request_factory():
    """Factory for bare Starlette requests."""
    return build_request


@pytest.fixture
def fake_request():
    """A request with no headers."""
    return build_request()


@pytest.fixture
def error_log():
    """Stand-in for the structlog logger injected into the translator."""
    return MagicMock()


@pytest.fixture
def diagnostic_hook():
    """Recording diagnostic hook."""
    return MagicMock()


@pytest.fixture
def translator(error_log, diagnostic_hook):
    """Translator with an injected logger and hook, tracebacks hidden."""
    return ErrorTranslator(log=error_log, diagnostic_hook=diagnostic_hook)


@pytest.fixture
def openrosa_headers():
    """Headers a compliant OpenRosa client sends."""
    return {
        "X-OpenRosa-Version": "1.0",
        "Date": "Tue, 01 Jan 2030 00:00:00 GMT",
    }
