"""Unit tests for hsm_connector/core/config.py."""

import pytest
from pydantic import ValidationError

from hsm_connector.core.config import (
    DEFAULT_HOST_HEADER_ALLOWLIST,
    ConnectorConfig,
    LogConfig,
    Settings,
    get_settings,
)
from hsm_connector.core.listener import LocalSocketAddress, TcpAddress


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove connector environment variables for the test."""
    for name in (
        "HSM_CONNECTOR_LISTEN",
        "HSM_CONNECTOR_SERIAL",
        "HSM_CONNECTOR_APP_VERSION",
        "HSM_CONNECTOR_HOST_HEADER_ALLOWLISTING",
        "HSM_CONNECTOR_HOST_HEADER_ALLOWLIST",
        "HSM_CONNECTOR_STATUS_PID",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
@pytest.mark.usefixtures("clean_env")
class TestSettings:
    """Test suite for Settings."""

    def test_defaults(self) -> None:
        """Test the default configuration."""
        settings = Settings(_env_file=None)

        assert settings.listen == "127.0.0.1:12345"
        assert settings.serial == ""
        assert settings.status_pid == 1
        assert settings.host_header_allowlisting is False
        assert settings.host_header_allowlist == DEFAULT_HOST_HEADER_ALLOWLIST
        assert isinstance(settings.log_config, LogConfig)

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are read from prefixed environment variables."""
        monkeypatch.setenv("HSM_CONNECTOR_LISTEN", "unix:/run/connector.sock")
        monkeypatch.setenv("HSM_CONNECTOR_SERIAL", "0012345678")
        monkeypatch.setenv("HSM_CONNECTOR_HOST_HEADER_ALLOWLISTING", "true")
        monkeypatch.setenv("HSM_CONNECTOR_HOST_HEADER_ALLOWLIST", '["hsm.local"]')
        monkeypatch.setenv("HSM_CONNECTOR_LOG_CONFIG__LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.listener_address() == LocalSocketAddress("/run/connector.sock")
        assert settings.serial == "0012345678"
        assert settings.host_header_allowlisting is True
        assert settings.host_header_allowlist == ["hsm.local"]
        assert settings.log_config.log_level == "DEBUG"

    def test_invalid_listen_is_rejected(self) -> None:
        """Test an unparseable listen address fails validation."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, listen="not-an-address")

    def test_allowlist_entries_are_stripped(self) -> None:
        """Test blank allowlist entries are dropped."""
        settings = Settings(
            _env_file=None, host_header_allowlist=[" localhost ", "", "  "]
        )

        assert settings.host_header_allowlist == ["localhost"]

    def test_connector_config_is_frozen(self) -> None:
        """Test the derived connector configuration cannot be modified."""
        settings = Settings(
            _env_file=None,
            app_version="3.0.5",
            serial="0012345678",
            status_pid=42,
            host_header_allowlisting=True,
            host_header_allowlist=["localhost"],
        )

        config = settings.connector_config()

        assert isinstance(config, ConnectorConfig)
        assert config.version == "3.0.5"
        assert config.serial == "0012345678"
        assert config.pid == 42
        assert config.allowlisting_enabled is True
        assert config.allowlist.hosts == frozenset({"localhost"})
        with pytest.raises(ValidationError):
            config.serial = "other"  # type: ignore[misc]

    def test_listener_address_tcp(self) -> None:
        """Test the listen address is parsed into a TcpAddress."""
        settings = Settings(_env_file=None, listen="[::1]:9000")

        assert settings.listener_address() == TcpAddress("::1", 9000)

    def test_get_settings_is_cached(self) -> None:
        """Test get_settings returns the same instance until the cache clears."""
        assert get_settings() is get_settings()
