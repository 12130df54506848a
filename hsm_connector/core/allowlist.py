"""Host header allowlisting.

A connector bound to loopback is still reachable from a browser through DNS
rebinding: a hostile page resolves its own name to 127.0.0.1 and posts
commands to the connector. Requiring the Host header to be one of a small set
of known names closes that hole.
"""

from collections.abc import Iterable


def extract_host(address: str) -> str:
    """Strip a trailing ``:port`` from a Host header value.

    Bracketed IPv6 literals are handled: when the value contains ``]`` only a
    colon after the bracket counts as the port separator.

    Args:
        address: Host header value, e.g. ``"localhost:12345"``.

    Returns:
        str: The host without its port.

    Examples:
        >>> extract_host("192.0.2.1:8080")
        '192.0.2.1'
        >>> extract_host("[2001:db8::1]:8080")
        '[2001:db8::1]'
        >>> extract_host("[2001:db8::1]")
        '[2001:db8::1]'
    """
    separator = address.rfind(":")
    if separator == -1:
        return address
    bracket = address.find("]")
    if separator > max(bracket, 0):
        return address[:separator]
    return address


class HostAllowlist:
    """Immutable set of host names accepted in the Host header.

    Args:
        hosts: Exact host names (without port) to accept.
    """

    def __init__(self, hosts: Iterable[str]) -> None:
        self._hosts = frozenset(hosts)

    @property
    def hosts(self) -> frozenset[str]:
        """The accepted host names."""
        return self._hosts

    def validate(self, address: str) -> bool:
        """Check a Host header value against the allowlist.

        Only called when allowlisting is enabled, so an empty allowlist
        rejects every host.
        """
        return extract_host(address) in self._hosts

    def __len__(self) -> int:
        return len(self._hosts)

    def __repr__(self) -> str:
        return f"HostAllowlist({sorted(self._hosts)!r})"
