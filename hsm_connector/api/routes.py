"""Connector routes: device status and command relay.

Both routes are registered for every method and check the method themselves,
answering anything else with 405 and an ``Allow`` header naming the single
accepted method.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from fastapi.routing import APIRoute
from loguru import logger
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect
from starlette.routing import Match
from starlette.types import Receive, Scope, Send

from hsm_connector.api.constants import (
    ALL_METHODS,
    API_PATH,
    MAX_COMMAND_LENGTH,
    MIN_COMMAND_LENGTH,
    REQUEST_ID_HEADER,
    STATUS_PATH,
)
from hsm_connector.api.schemas.request import parse_content_length
from hsm_connector.api.utils.responses import RelayResponse
from hsm_connector.core.config import ConnectorConfig
from hsm_connector.core.constants import ANY_SERIAL, STATUS_NO_DEVICE, STATUS_OK
from hsm_connector.core.exceptions import (
    BadRequestError,
    InternalError,
    MethodNotAllowedError,
    TransportError,
)
from hsm_connector.core.listener import ListenerAddress, describe_listener
from hsm_connector.infrastructure.transport import DeviceTransport


class AnyMethodRoute(APIRoute):
    """Route that matches its path whatever the request method.

    Starlette answers a method outside the registered list with its own 405
    listing every registered method. The connector endpoints instead
    advertise the single method they accept, so method checks are left to
    them.
    """

    def matches(self, scope: Scope) -> tuple[Match, Scope]:
        match, child_scope = super().matches(scope)
        if match is Match.PARTIAL:
            return Match.FULL, child_scope
        return match, child_scope

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.app(scope, receive, send)


def get_correlation_id(request: Request) -> str:
    """Read the correlation id the request middleware put on the request."""
    return request.headers.get(REQUEST_ID_HEADER, "")


CorrelationId = Annotated[str, Depends(get_correlation_id)]


def require_method(request: Request, method: str) -> None:
    """Raise MethodNotAllowedError unless the request uses ``method``."""
    if request.method != method:
        raise MethodNotAllowedError(allow=method, method=request.method)


def render_status(
    status: str,
    config: ConnectorConfig,
    listener: ListenerAddress | None,
) -> str:
    """Render the status body, one ``key=value`` per line in fixed order."""
    address, port = describe_listener(listener)
    lines = [
        f"status={status}",
        f"serial={config.serial or ANY_SERIAL}",
        f"version={config.version}",
        f"pid={config.pid}",
        f"address={address}",
        f"port={port}",
    ]
    return "".join(f"{line}\n" for line in lines)


def build_router(
    config: ConnectorConfig,
    transport: DeviceTransport,
    listener: ListenerAddress | None,
) -> APIRouter:
    """Create the connector router bound to a configuration and a transport.

    Args:
        config: Frozen connector configuration.
        transport: Device transport the routes talk to.
        listener: Address the daemon listens on, reported by the status route.

    Returns:
        APIRouter: Router with the status and relay routes.
    """
    router = APIRouter(route_class=AnyMethodRoute)

    @router.api_route(STATUS_PATH, methods=ALL_METHODS)
    async def status(request: Request, correlation_id: CorrelationId) -> PlainTextResponse:
        """Report whether the device is reachable and where the daemon listens.

        A missing device is reported in the body, not as a failed request.
        """
        require_method(request, "GET")

        try:
            await run_in_threadpool(transport.check, correlation_id, config.serial)
        except TransportError as exc:
            logger.warning("Status failed to open device: {}", exc, error=exc.message)
            device_status = STATUS_NO_DEVICE
        else:
            device_status = STATUS_OK

        return PlainTextResponse(render_status(device_status, config, listener))

    @router.api_route(API_PATH, methods=ALL_METHODS)
    async def relay(request: Request, correlation_id: CorrelationId) -> RelayResponse:
        """Relay one command frame to the device and return its response."""
        require_method(request, "POST")

        content_length = parse_content_length(request.headers.get("content-length"))
        if not MIN_COMMAND_LENGTH <= content_length <= MAX_COMMAND_LENGTH:
            msg = "command length out of range"
            raise BadRequestError(msg, context={"content_length": content_length})

        try:
            command = await request.body()
        except ClientDisconnect as exc:
            msg = "failed reading incoming request"
            raise InternalError(msg, cause=exc) from exc

        # TransportError propagates to its exception handler as a bare 500
        reply = await run_in_threadpool(
            transport.proxy, command, correlation_id, config.serial
        )
        return RelayResponse(reply)

    return router
