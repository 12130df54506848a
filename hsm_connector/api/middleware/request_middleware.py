"""Request middleware: correlation, access control and fault isolation.

Every HTTP request to the connector passes through ``RequestMiddleware``,
which, in order:

1. Takes the correlation id from ``X-Request-ID`` or generates one, and the
   client IP from ``X-Real-IP`` or the peer address, writing both back onto
   the request headers for the endpoints.
2. Builds the immutable ``LogContext`` and binds it to Loguru for the
   duration of the request.
3. Rejects requests whose Host header is not allowlisted (when enabled)
   before any endpoint code runs.
4. Runs everything above and the wrapped application behind a fault
   boundary: any exception that escapes is logged and answered with a bare
   500, and never reaches the server or other requests.
5. Logs the outcome (first status written and latency).

This is a pure ASGI middleware rather than a ``BaseHTTPMiddleware`` because
it has to decorate the ``send`` channel to observe the status actually
written to the client.
"""

import time
from http import HTTPStatus
from typing import Any

from loguru import logger
from starlette.datastructures import MutableHeaders
from starlette.requests import ClientDisconnect
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from hsm_connector.api.constants import REAL_IP_HEADER, REQUEST_ID_HEADER
from hsm_connector.api.middleware.response_writer import CorrelatedResponseWriter
from hsm_connector.api.schemas.request import LogContext, host_portion, remote_address
from hsm_connector.api.utils.responses import status_line_response
from hsm_connector.core.config import ConnectorConfig
from hsm_connector.core.constants import MILLISECONDS_PER_SECOND
from hsm_connector.core.context import (
    FALLBACK_CORRELATION_ID,
    RequestContext,
    generate_correlation_id,
)
from hsm_connector.core.exceptions import ForbiddenError, InternalError


class RequestMiddleware:
    """Wrap the connector application with the per-request pipeline.

    Args:
        app: The ASGI application to wrap.
        config: Frozen connector configuration (allowlist settings).
    """

    def __init__(self, app: ASGIApp, *, config: ConnectorConfig) -> None:
        self.app = app
        self.config = config

    def _resolve_identity(self, scope: Scope) -> tuple[str, str]:
        """Resolve correlation id and client IP, writing them onto the request."""
        headers = MutableHeaders(scope=scope)

        correlation_id = headers.get(REQUEST_ID_HEADER) or generate_correlation_id()
        headers[REQUEST_ID_HEADER] = correlation_id

        client_ip = headers.get(REAL_IP_HEADER) or host_portion(remote_address(scope))
        headers[REAL_IP_HEADER] = client_ip

        return correlation_id, client_ip

    def _host_allowed(self, scope: Scope) -> bool:
        if not self.config.allowlisting_enabled:
            return True
        host = MutableHeaders(scope=scope).get("host", "")
        return self.config.allowlist.validate(host)

    async def _send_error(
        self, status_code: int, scope: Scope, receive: Receive, send: Send
    ) -> None:
        """Send a status line response, logging if the client is already gone."""
        try:
            await status_line_response(status_code)(scope, receive, send)
        except (OSError, ClientDisconnect) as exc:
            logger.warning(
                "Could not deliver {} response: {}",
                status_code,
                exc,
                status_code=status_code,
            )

    def _log_outcome(
        self, response: CorrelatedResponseWriter, latency_ms: float
    ) -> None:
        fields = {
            "latency_ms": round(latency_ms, 2),
            "status_code": response.status_code,
        }
        if response.status_code != HTTPStatus.OK:
            logger.bind(**fields).error("Error in handling request")
        else:
            logger.bind(**fields).info("Handled request")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = FALLBACK_CORRELATION_ID
        log_fields: dict[str, Any] = {"correlation_id": correlation_id}

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = correlation_id
            await send(message)

        response = CorrelatedResponseWriter(send_with_request_id)

        try:
            correlation_id, _ = self._resolve_identity(scope)
            RequestContext.set_correlation_id(correlation_id)
            # Kept for the fault log if the full context cannot be built
            log_fields = {"correlation_id": correlation_id}
            log_fields = LogContext.from_scope(scope).model_dump()

            with logger.contextualize(**log_fields):
                if not self._host_allowed(scope):
                    rejection = ForbiddenError(
                        "host not in allowlist",
                        {"host": MutableHeaders(scope=scope).get("host", "")},
                    )
                    logger.log(
                        rejection.log_level,
                        "Host not in allowlist",
                        **rejection.context,
                    )
                    await self._send_error(
                        rejection.status_code, scope, receive, response
                    )
                    return

                start_time = time.perf_counter()
                await self.app(scope, receive, response)
                elapsed = time.perf_counter() - start_time
                self._log_outcome(response, elapsed * MILLISECONDS_PER_SECOND)
        except Exception as exc:  # noqa: BLE001 - fault boundary for the request
            fault = InternalError.from_fault(exc)
            with logger.contextualize(**log_fields):
                logger.opt(exception=exc).log(
                    fault.log_level,
                    "Recovered from handler fault: {}",
                    fault.message,
                    fault=fault.message,
                    response_started=response.started,
                    **fault.context,
                )
                if not response.started:
                    await self._send_error(
                        fault.status_code, scope, receive, response
                    )
        finally:
            RequestContext.clear()
