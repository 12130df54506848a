"""Request context management utilities for correlation IDs."""

import uuid
from contextvars import ContextVar

# Placeholder used when a fresh identifier cannot be generated
FALLBACK_CORRELATION_ID = "-"

# Context variable for storing correlation ID across async boundaries
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


class RequestContext:
    """Manages request context using contextvars for async-safe storage.

    The request middleware stores the correlation id here so that code which
    has no access to the request (for example a device transport running in
    the thread pool) can still tag its log lines with it.
    """

    @staticmethod
    def set_correlation_id(correlation_id: str) -> None:
        """Set the correlation ID for the current context.

        Args:
            correlation_id: The correlation ID to store in the context.
        """
        _correlation_id_var.set(correlation_id)

    @staticmethod
    def get_correlation_id() -> str | None:
        """Get the correlation ID from the current context.

        Returns:
            str | None: The correlation ID if set, None otherwise.
        """
        return _correlation_id_var.get()

    @staticmethod
    def clear() -> None:
        """Clear all context variables."""
        _correlation_id_var.set(None)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracking.

    Returns a UUID4 string. ``uuid.uuid4`` draws from ``os.urandom``, which can
    fail on hosts without an entropy source; in that case the fallback
    ``"-"`` is returned so that a request never goes without an id.

    Returns:
        str: A string representation of a UUID4, or ``"-"``.

    Examples:
        >>> correlation_id = generate_correlation_id()
        >>> len(correlation_id)
        36
    """
    try:
        return str(uuid.uuid4())
    except (OSError, NotImplementedError):
        return FALLBACK_CORRELATION_ID
