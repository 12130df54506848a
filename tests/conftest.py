"""Root conftest.py for the connector test suite.

This file contains project-wide fixtures and pytest configuration.
"""

from collections.abc import Generator
from typing import Any

import pytest
from loguru import logger

from hsm_connector.core.config import get_settings
from hsm_connector.core.context import RequestContext
from hsm_connector.core.logging import _state
from tests.fakes import RecordingTransport


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


@pytest.fixture
def transport() -> RecordingTransport:
    """Provide a fresh recording device transport."""
    return RecordingTransport()


@pytest.fixture(autouse=True)
def skip_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep setup_logging from replacing the Loguru sinks during tests."""
    monkeypatch.setattr(_state, "configured", True)


@pytest.fixture(autouse=True)
def clean_settings_and_context() -> Generator[None]:
    """Clear the settings cache and request context around each test."""
    get_settings.cache_clear()
    RequestContext.clear()
    yield
    get_settings.cache_clear()
    RequestContext.clear()


@pytest.fixture
def captured_logs() -> Generator[list[dict[str, Any]]]:
    """Capture Loguru records emitted during the test.

    Yields:
        list[dict[str, Any]]: The Loguru records, in emission order.
    """
    records: list[dict[str, Any]] = []
    handler_id = logger.add(
        lambda message: records.append(message.record), level="DEBUG"
    )
    yield records
    logger.remove(handler_id)
