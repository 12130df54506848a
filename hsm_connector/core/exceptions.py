"""Structured exception hierarchy for the connector request pipeline.

Every failure the connector can produce falls into one of three families:

- **ClientError**: the request itself is wrong (method, frame length, host).
  Mapped to a 4xx status; the caller has to correct the request.
- **TransportError**: the device transport could not reach or talk to the
  HSM. Mapped to 500; the connector never retries on its own.
- **InternalError**: body read failures, response write failures, short
  writes and any fault that escapes a handler. Mapped to 500.

Clients only ever see the generic status line for the mapped status code.
The message, context and cause carried by these exceptions are meant for the
structured log, keyed by correlation id.
"""

from enum import Enum
from http import HTTPStatus
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes used in log records."""

    BAD_REQUEST = "BAD_REQUEST"
    """The request frame was malformed (e.g. length out of range)."""

    FORBIDDEN = "FORBIDDEN"
    """The request Host header is not in the allowlist."""

    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    """The route does not accept the request method."""

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """The device transport failed during check or proxy."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred while serving the request."""


class Severity(Enum):
    """Severity levels used to pick the log level of a failure."""

    LOW = "LOW"
    """Expected during normal operation, caused by the client."""

    MEDIUM = "MEDIUM"
    """Degraded operation, typically the device being unavailable."""

    HIGH = "HIGH"
    """Security relevant or integrity relevant failures."""

    CRITICAL = "CRITICAL"
    """Unrecovered faults inside the connector."""


# Loguru level each severity is logged at
SEVERITY_LOG_LEVELS = {
    Severity.LOW: "WARNING",
    Severity.MEDIUM: "ERROR",
    Severity.HIGH: "ERROR",
    Severity.CRITICAL: "CRITICAL",
}


class ConnectorError(Exception):
    """Base exception class for all connector exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message, never sent to the client
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def headers(self) -> dict[str, str] | None:
        """Extra response headers to send along with the status line."""
        return None

    @property
    def log_level(self) -> str:
        """Loguru level name for logging this error, derived from its severity."""
        return SEVERITY_LOG_LEVELS[self.severity]

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: A string showing the class name, error code, message, severity,
                and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ClientError(ConnectorError):
    """Base class for errors the client has to fix before retrying."""

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        *,
        error_code: str | ErrorCode = ErrorCode.BAD_REQUEST,
        severity: Severity = Severity.LOW,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(error_code, message, severity, context, cause)


class BadRequestError(ClientError):
    """Raised when the command frame length is outside the accepted range."""


class ForbiddenError(ClientError):
    """Raised when the Host header does not match the allowlist."""

    status_code = HTTPStatus.FORBIDDEN

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message, context, error_code=ErrorCode.FORBIDDEN, severity=Severity.HIGH
        )


class MethodNotAllowedError(ClientError):
    """Raised when a route is called with a method it does not serve.

    Args:
        allow: The single method the route accepts, sent in the Allow header
        method: The method the client used
    """

    status_code = HTTPStatus.METHOD_NOT_ALLOWED

    def __init__(self, allow: str, method: str) -> None:
        super().__init__(
            f"method {method} not allowed",
            {"allow": allow, "method": method},
            error_code=ErrorCode.METHOD_NOT_ALLOWED,
        )
        self.allow = allow

    @property
    def headers(self) -> dict[str, str]:
        """The Allow header advertising the accepted method."""
        return {"Allow": self.allow}


class TransportError(ConnectorError):
    """Raised by a device transport when the HSM cannot be reached or used.

    Args:
        message: Description of the transport failure
        context: Additional context (serial, operation, device error code)
        cause: The low-level exception raised by the transport
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.TRANSPORT_ERROR, message, Severity.MEDIUM, context, cause
        )


class InternalError(ConnectorError):
    """Raised for failures inside the connector itself.

    Also used by the request middleware to wrap any other exception that
    escapes a handler, so that every fault is logged in the same shape.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.INTERNAL_ERROR, message, Severity.CRITICAL, context, cause
        )

    @classmethod
    def from_fault(cls, fault: BaseException) -> "InternalError":
        """Wrap an arbitrary exception, passing InternalError through as is."""
        if isinstance(fault, InternalError):
            return fault
        return cls(
            f"unhandled {type(fault).__name__}: {fault}",
            context={"fault_type": type(fault).__name__},
            cause=fault,
        )
