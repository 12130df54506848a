"""Listener address variants.

The address the daemon listens on is resolved once at start-up and passed to
the application explicitly; the status route reports it back to clients.
"""

from dataclasses import dataclass
from typing import TypeAlias

UNIX_PREFIX = "unix:"


@dataclass(frozen=True, slots=True)
class TcpAddress:
    """A TCP listener, e.g. ``127.0.0.1:12345``."""

    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class LocalSocketAddress:
    """A local (unix domain) socket listener."""

    name: str

    def __str__(self) -> str:
        return f"{UNIX_PREFIX}{self.name}"


ListenerAddress: TypeAlias = TcpAddress | LocalSocketAddress


def parse_listener_address(value: str) -> ListenerAddress:
    """Parse a listener specification.

    Accepts ``host:port``, ``[ipv6]:port`` and ``unix:/path/to/socket``.

    Args:
        value: The listener specification.

    Returns:
        ListenerAddress: The parsed address.

    Raises:
        ValueError: If the value is not a valid listener specification.
    """
    if value.startswith(UNIX_PREFIX):
        name = value[len(UNIX_PREFIX) :]
        if not name:
            msg = f"missing socket path in listener address {value!r}"
            raise ValueError(msg)
        return LocalSocketAddress(name)

    host, separator, port = value.rpartition(":")
    if not separator or not port.isdigit():
        msg = f"listener address {value!r} must be host:port or unix:<path>"
        raise ValueError(msg)
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        msg = f"IPv6 listener address {value!r} must be bracketed"
        raise ValueError(msg)

    port_number = int(port)
    if not 0 < port_number < 65536:  # noqa: PLR2004 - TCP port range
        msg = f"port out of range in listener address {value!r}"
        raise ValueError(msg)
    return TcpAddress(host=host, port=port_number)


def describe_listener(listener: ListenerAddress | None) -> tuple[str, str]:
    """Return the ``(address, port)`` pair reported on the status route.

    TCP listeners report their host and port, local sockets report the socket
    name and port ``0``, and an unknown listener reports two blanks.
    """
    match listener:
        case TcpAddress(host=host, port=port):
            return host, str(port)
        case LocalSocketAddress(name=name):
            return name, "0"
        case _:
            return "", ""
