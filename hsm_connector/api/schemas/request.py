"""Request-scoped logging context.

Built once per request by the request middleware from the ASGI scope and
attached to every log line emitted while the request is served.
"""

from pydantic import BaseModel, ConfigDict, Field
from starlette.datastructures import Headers
from starlette.types import Scope

from hsm_connector.api.constants import REAL_IP_HEADER, REQUEST_ID_HEADER

# Headers like User-Agent are client controlled, keep them bounded in logs
MAX_HEADER_LOG_LENGTH = 200


def parse_content_length(value: str | None) -> int:
    """Parse a Content-Length header value.

    Returns:
        int: The announced length, or ``-1`` when absent or not a number.
    """
    if value is None:
        return -1
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return -1
    return int(value)


def remote_address(scope: Scope) -> str:
    """Format the peer address of the connection as ``host:port``.

    IPv6 peers are bracketed. Connections without a peer address (local
    sockets) yield an empty string.
    """
    client = scope.get("client")
    if not client:
        return ""
    host, port = client[0], client[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def host_portion(address: str) -> str:
    """Return everything before the last colon of a ``host:port`` string."""
    host, separator, _ = address.rpartition(":")
    return host if separator else address


def request_uri(scope: Scope) -> str:
    """Rebuild the request URI (path and query) from the scope."""
    path = scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


class LogContext(BaseModel):
    """Fixed set of fields logged with every line of a request."""

    model_config = ConfigDict(frozen=True)

    correlation_id: str = Field(..., description="X-Request-ID of the request")
    client_ip: str = Field(..., description="X-Real-IP or the peer host")
    remote_addr: str = Field(..., description="Peer address of the connection")
    method: str
    content_length: int
    content_type: str
    user_agent: str
    uri: str

    @classmethod
    def from_scope(cls, scope: Scope) -> "LogContext":
        """Build the context from a scope whose headers are already resolved.

        The request middleware writes the correlation id and client IP back
        onto the request headers before calling this.
        """
        headers = Headers(scope=scope)
        return cls(
            correlation_id=headers.get(REQUEST_ID_HEADER, ""),
            client_ip=headers.get(REAL_IP_HEADER, ""),
            remote_addr=remote_address(scope),
            method=scope.get("method", ""),
            content_length=parse_content_length(headers.get("content-length")),
            content_type=headers.get("content-type", ""),
            user_agent=headers.get("user-agent", "")[:MAX_HEADER_LOG_LENGTH],
            uri=request_uri(scope),
        )
