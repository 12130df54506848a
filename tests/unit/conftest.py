"""Shared fixtures for unit tests."""

from collections.abc import Callable

import pytest
from starlette.types import Message, Scope

from hsm_connector.core.config import ConnectorConfig
from tests.fakes import SendRecorder

ScopeFactory = Callable[..., Scope]


@pytest.fixture
def make_scope() -> ScopeFactory:
    """Factory for minimal HTTP ASGI scopes.

    Returns:
        ScopeFactory: Callable accepting method, path, headers, client and query.
    """

    def _make_scope(
        method: str = "POST",
        path: str = "/connector/api",
        headers: dict[str, str] | None = None,
        client: tuple[str, int] | None = ("127.0.0.1", 50000),
        query_string: bytes = b"",
    ) -> Scope:
        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {"host": "localhost:12345"}).items()
        ]
        return {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "path": path,
            "raw_path": path.encode(),
            "query_string": query_string,
            "headers": raw_headers,
            "client": client,
            "server": ("127.0.0.1", 12345),
        }

    return _make_scope


@pytest.fixture
def send() -> SendRecorder:
    """Provide a recording ASGI send callable."""
    return SendRecorder()


@pytest.fixture
def receive() -> Callable[[], object]:
    """Provide an ASGI receive callable yielding an empty request body."""

    async def _receive() -> Message:
        return {"type": "http.request", "body": b"", "more_body": False}

    return _receive


@pytest.fixture
def connector_config() -> ConnectorConfig:
    """Provide a connector configuration with allowlisting disabled."""
    return ConnectorConfig(version="3.0.5")
