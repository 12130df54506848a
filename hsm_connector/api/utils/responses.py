"""Response classes used by the connector routes.

Errors never carry detail to the client: every failure is answered with the
bare status line of its status code as a plain text body, e.g.
``Method Not Allowed\\n``. Successful relay responses carry the device's raw
bytes as ``application/octet-stream``.
"""

from http import HTTPStatus

from starlette.requests import ClientDisconnect
from starlette.responses import PlainTextResponse, Response
from starlette.types import Receive, Scope, Send

from hsm_connector.api.constants import OCTET_STREAM
from hsm_connector.api.middleware.response_writer import CorrelatedResponseWriter
from hsm_connector.core.exceptions import InternalError


def status_line_response(
    status_code: int, headers: dict[str, str] | None = None
) -> PlainTextResponse:
    """Build a plain text response whose body is the status line.

    Args:
        status_code: HTTP status code of the response.
        headers: Extra headers, e.g. ``Allow`` for 405 responses.

    Returns:
        PlainTextResponse: Response with body ``"<reason phrase>\\n"``.
    """
    response = PlainTextResponse(
        f"{HTTPStatus(status_code).phrase}\n",
        status_code=status_code,
        headers=headers,
    )
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


class RelayResponse(Response):
    """Binary response carrying the device's reply to a command frame.

    ASGI has no notion of a partial write: a send either hands the whole
    message to the server or raises. A failing send is therefore the only
    write error that can be observed here, and it is raised as
    ``InternalError``. The byte count comparison afterwards only trips when
    the body messages sent differ from ``self.body``, e.g. in a subclass that
    streams a different payload. It says nothing about what reached the
    client.
    """

    media_type = OCTET_STREAM

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        writer = CorrelatedResponseWriter(send)
        try:
            await super().__call__(scope, receive, writer)
        except (OSError, ClientDisconnect) as exc:
            msg = "failed response write"
            raise InternalError(
                msg, {"n": writer.bytes_written, "len": len(self.body)}, exc
            ) from exc

        if writer.bytes_written != len(self.body):
            msg = "partial response write"
            raise InternalError(msg, {"n": writer.bytes_written, "len": len(self.body)})
