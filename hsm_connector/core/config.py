"""Centralized configuration management.

Configuration is read once at start-up using Pydantic Settings, from
environment variables (prefixed ``HSM_CONNECTOR_``, nested values separated
by ``__``) and an optional ``.env`` file. The request pipeline never reads
settings directly: ``Settings.connector_config()`` freezes the values it
needs into a ``ConnectorConfig`` that is injected into the middleware and
the endpoints.

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in the working directory
3. Default values in model definitions
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hsm_connector.core.allowlist import HostAllowlist
from hsm_connector.core.listener import ListenerAddress, parse_listener_address

DEFAULT_HOST_HEADER_ALLOWLIST = ["localhost", "localhost.", "127.0.0.1", "[::1]"]


class LogConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: ["authorization", "cookie"],
        description="Field names to redact",
    )


class ConnectorConfig(BaseModel):
    """Immutable view of the settings consumed by the request pipeline."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    version: str
    serial: str = ""
    pid: int = 1
    allowlisting_enabled: bool = False
    allowlist: HostAllowlist = Field(
        default_factory=lambda: HostAllowlist(DEFAULT_HOST_HEADER_ALLOWLIST)
    )


class Settings(BaseSettings):
    """Main settings class for the connector."""

    model_config = SettingsConfigDict(
        env_prefix="HSM_CONNECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
    )

    # Application settings
    app_name: str = Field(default="hsm-connector", description="Application name")
    app_version: str = Field(
        default="0.1.0", description="Daemon version reported on the status route"
    )
    environment: Literal["development", "production"] = Field(
        default="development",
        description="Environment the daemon is running in",
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    # Listener settings
    listen: str = Field(
        default="127.0.0.1:12345",
        description="Listen address, host:port, [ipv6]:port or unix:<path>",
    )

    # Device settings
    serial: str = Field(
        default="",
        description="Serial of the device to address, empty for any device",
    )
    status_pid: int = Field(
        default=1,
        ge=0,
        description="Process identifier reported on the status route",
    )

    # Host header allowlisting
    host_header_allowlisting: bool = Field(
        default=False,
        description="Reject requests whose Host header is not allowlisted",
    )
    host_header_allowlist: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HOST_HEADER_ALLOWLIST),
        description="Host names accepted when allowlisting is enabled",
    )

    # Logging configuration
    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )

    @field_validator("listen", mode="after")
    @classmethod
    def validate_listen(cls, v: str) -> str:
        """Reject listener specifications that cannot be parsed."""
        _ = cls
        parse_listener_address(v)
        return v

    @field_validator("host_header_allowlist", mode="after")
    @classmethod
    def strip_allowlist(cls, v: list[str]) -> list[str]:
        """Drop surrounding whitespace and empty entries."""
        _ = cls
        return [host.strip() for host in v if host.strip()]

    def listener_address(self) -> ListenerAddress:
        """Parse the configured listen address."""
        return parse_listener_address(self.listen)

    def connector_config(self) -> ConnectorConfig:
        """Freeze the values used by the request pipeline."""
        return ConnectorConfig(
            version=self.app_version,
            serial=self.serial,
            pid=self.status_pid,
            allowlisting_enabled=self.host_header_allowlisting,
            allowlist=HostAllowlist(self.host_header_allowlist),
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
