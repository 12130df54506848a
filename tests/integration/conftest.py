"""Shared fixtures for integration tests.

Integration tests drive the full application (middleware, exception handlers
and routes) in-process through httpx's ASGI transport.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from hsm_connector.api.main import create_app
from hsm_connector.core.config import Settings
from hsm_connector.core.listener import ListenerAddress, TcpAddress
from tests.fakes import ClientFactoryType, RecordingTransport

TEST_LISTENER = TcpAddress(host="127.0.0.1", port=12345)


@pytest.fixture
def settings() -> Settings:
    """Provide settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, app_version="3.0.5", listen="127.0.0.1:12345")


@pytest.fixture
async def client_factory(
    settings: Settings, transport: RecordingTransport
) -> AsyncGenerator[ClientFactoryType]:
    """Factory fixture for creating clients against custom app instances.

    Usage:
        async def test_something(client_factory):
            client = await client_factory(serial="0012345678")
    """
    clients: list[AsyncClient] = []

    async def _create_client(
        listener: ListenerAddress | None = TEST_LISTENER,
        base_url: str = "http://localhost:12345",
        **overrides: object,
    ) -> AsyncClient:
        app_settings = settings.model_copy(update=overrides) if overrides else settings
        app = create_app(app_settings, transport=transport, listener=listener)
        client = AsyncClient(transport=ASGITransport(app=app), base_url=base_url)
        clients.append(client)
        return client

    yield _create_client

    for client in clients:
        await client.aclose()


@pytest.fixture
async def client(client_factory: ClientFactoryType) -> AsyncClient:
    """Provide a client for an application with default test settings."""
    return await client_factory()
