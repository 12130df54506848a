"""Device transport interface.

The device transport owns the physical connection to the HSM. The request
pipeline only relies on the two operations below; how a transport finds,
claims and talks to the device is its own business. Transports front a single
physical device and must serialize concurrent calls themselves: the relay
endpoint calls them from several worker threads without any coordination.

Both operations are blocking and are run in the thread pool by the
endpoints. Failures must be reported by raising ``TransportError``.
"""

from typing import Protocol, runtime_checkable

from loguru import logger

from hsm_connector.core.exceptions import TransportError


@runtime_checkable
class DeviceTransport(Protocol):
    """Operations the connector needs from a device transport."""

    def check(self, correlation_id: str, serial: str) -> None:
        """Verify that the device with ``serial`` (any device if empty) is usable.

        Raises:
            TransportError: If the device cannot be reached.
        """
        ...

    def proxy(self, payload: bytes, correlation_id: str, serial: str) -> bytes:
        """Send one command frame to the device and return its raw response.

        Raises:
            TransportError: If the exchange with the device fails.
        """
        ...


class NullDeviceTransport:
    """Transport used when no hardware transport has been wired in.

    Every operation fails, so the daemon starts, reports ``NO_DEVICE`` on the
    status route and answers relay requests with 500.
    """

    def check(self, correlation_id: str, serial: str) -> None:
        logger.debug(
            "No device transport configured",
            correlation_id=correlation_id,
            serial=serial,
        )
        raise TransportError("no device transport configured", {"serial": serial})

    def proxy(self, payload: bytes, correlation_id: str, serial: str) -> bytes:
        logger.debug(
            "Dropping command frame, no device transport configured",
            correlation_id=correlation_id,
            serial=serial,
            length=len(payload),
        )
        raise TransportError("no device transport configured", {"serial": serial})
