"""Structured logging built on Loguru.

Every request handled by the connector is logged with a fixed set of
context fields (correlation id, client IP, method, URI, ...). The request
middleware attaches them with ``logger.contextualize`` so that all lines
emitted while serving a request, including those from the device transport,
carry the same correlation id.

Formatter types:
- **console**: Human-readable with inline context (development)
- **json**: One JSON object per line for log collectors
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Final, Protocol, cast

from loguru import logger


class _LoggingState:
    """Simple state holder to track if logging has been configured."""

    def __init__(self) -> None:
        self.configured = False


_state = _LoggingState()


class SettingsProtocol(Protocol):
    """Protocol for settings objects that setup_logging can accept."""

    @property
    def debug(self) -> bool:
        """Debug mode flag."""
        ...

    @property
    def environment(self) -> str:
        """Deployment environment."""
        ...

    @property
    def log_config(self) -> LogConfigProtocol:
        """Log configuration."""
        ...


class LogConfigProtocol(Protocol):
    """Protocol for log configuration objects."""

    @property
    def log_level(self) -> str:
        """Logging level."""
        ...

    @property
    def log_formatter_type(self) -> str | None:
        """Log formatter type."""
        ...

    @property
    def sensitive_fields(self) -> list[str]:
        """Field names to redact."""
        ...


# Constants
DEFAULT_LOG_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)
CORRELATION_ID_DISPLAY_LENGTH: Final[int] = 8
MAX_FIELD_VALUE_LENGTH: Final[int] = 100
REDACTED: Final[str] = "[REDACTED]"

# Fields shown first, in this order, by the console formatter
PRIORITY_FIELDS: Final[tuple[str, ...]] = (
    "correlation_id",
    "method",
    "uri",
    "status_code",
    "latency_ms",
    "client_ip",
)

_sensitive_fields: set[str] = set()


def _escape(text: str) -> str:
    """Escape format braces and color markup in a value."""
    return text.replace("{", "{{").replace("}", "}}").replace("<", "\\<")


def _format_priority_field(field: str, value: object) -> str:
    """Format a priority field for display.

    Args:
        field: The field name.
        value: The field value.

    Returns:
        str: Formatted value with braces escaped.
    """
    text = _escape(str(value))
    if field == "correlation_id" and len(text) > CORRELATION_ID_DISPLAY_LENGTH:
        # Shorten correlation ID for readability
        return text[:CORRELATION_ID_DISPLAY_LENGTH]
    if field == "latency_ms":
        return f"{text}ms"
    if field == "status_code":
        # Color code status codes
        if text.startswith("2"):
            return f"<green>{text}</green>"
        if text.startswith("4"):
            return f"<red>{text}</red>"
        if text.startswith("5"):
            return f"<red><bold>{text}</bold></red>"
    return text


def _format_extra_field(key: str, value: object) -> str:
    """Format an extra field for display.

    Args:
        key: The field name.
        value: The field value.

    Returns:
        str: ``key=value`` with sensitive values redacted and long values cut.
    """
    str_value = str(value)
    if key.lower() in _sensitive_fields:
        str_value = REDACTED
    elif len(str_value) > MAX_FIELD_VALUE_LENGTH:
        # Limit length of field values to prevent huge logs
        str_value = str_value[: MAX_FIELD_VALUE_LENGTH - 3] + "..."

    return f"{_escape(str(key))}={_escape(str_value)}"


def _format_context_fields(extra: dict[str, Any]) -> list[str]:
    """Format all context fields from extra data.

    Args:
        extra: Extra fields from the log record.

    Returns:
        list[str]: List of formatted context parts.
    """
    context_parts = [
        f"<yellow>{_format_priority_field(field, extra[field])}</yellow>"
        for field in PRIORITY_FIELDS
        if extra.get(field) is not None
    ]
    context_parts.extend(
        f"<dim>{_format_extra_field(key, value)}</dim>"
        for key, value in extra.items()
        if key not in PRIORITY_FIELDS and not key.startswith("_") and value is not None
    )
    return context_parts


def format_console_with_context(record: dict[str, Any]) -> str:
    """Format log record for console with all context fields visible.

    Args:
        record: Loguru record to format.

    Returns:
        str: Format string for Loguru with context inlined.
    """
    try:
        time_str = record["time"].strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        parts = [
            f"<green>{time_str}</green>",
            f"<level>{record['level'].name: <8}</level>",
            f"<cyan>{record['name']}:{record['function']}:{record['line']}</cyan>",
        ]

        context_parts = _format_context_fields(record.get("extra", {}))
        if context_parts:
            parts.append(" ".join(f"[{part}]" for part in context_parts))

        parts.append(_escape(str(record.get("message", ""))))

        if record.get("exception"):
            parts.append("\n{exception}")

        return " | ".join(parts) + "\n"
    except (AttributeError, TypeError, ValueError, KeyError):
        # Fallback to default format if anything goes wrong
        return DEFAULT_LOG_FORMAT + "\n"


def serialize_for_json(record: dict[str, Any]) -> str:
    """Format log record as one JSON object per line.

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry with newline.
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if extra := record.get("extra", {}):
        log_entry.update(
            {
                k: REDACTED if k.lower() in _sensitive_fields else v
                for k, v in extra.items()
                if not k.startswith("_")
            }
        )

    if exc := record.get("exception"):
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return json.dumps(log_entry, default=str) + "\n"


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to Loguru.

    Uvicorn and asyncio log through the standard library; this handler makes
    their records come out of the same sink as the connector's own.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Forward log record to Loguru.

        Args:
            record: Standard library LogRecord to forward.
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def detect_formatter(settings: SettingsProtocol) -> str:
    """Pick a formatter when none is configured.

    Returns:
        str: ``console`` in development or on a terminal, else ``json``.
    """
    if settings.environment == "development" or sys.stdout.isatty():
        return "console"
    return "json"


def setup_logging(settings: SettingsProtocol) -> None:
    """Configure Loguru sinks and standard library interception.

    Args:
        settings: Application settings containing log configuration.

    Note:
        This function ensures it's only called once using module state.
    """
    if _state.configured:
        return

    logger.remove()

    _sensitive_fields.clear()
    _sensitive_fields.update(f.lower() for f in settings.log_config.sensitive_fields)

    formatter_type = settings.log_config.log_formatter_type or detect_formatter(
        settings
    )

    if formatter_type == "json":

        def structured_sink(message: object) -> None:
            """Custom sink that writes one JSON document per record."""
            if hasattr(message, "record"):
                sys.stdout.write(serialize_for_json(message.record))
                sys.stdout.flush()

        logger.add(
            structured_sink,
            level=settings.log_config.log_level,
            enqueue=True,  # Thread-safe async logging
            diagnose=False,
            backtrace=False,
        )
    else:
        logger.add(
            sys.stderr,
            format=cast("Any", format_console_with_context),
            level=settings.log_config.log_level,
            enqueue=True,
            colorize=True,
            diagnose=settings.debug,
            backtrace=settings.debug,
        )

    # Configure standard library logging to use Loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = [InterceptHandler()]
        uvicorn_logger.propagate = False

    logger.info(
        "Logging configured with {} formatter",
        formatter_type,
        formatter_type=formatter_type,
        log_level=settings.log_config.log_level,
    )

    _state.configured = True
