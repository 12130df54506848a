"""Status capturing decorator over the ASGI send channel."""

from http import HTTPStatus

from starlette.types import Message, Send


class CorrelatedResponseWriter:
    """Wrap an ASGI ``send`` callable and record what goes through it.

    The first status code seen wins: later ``http.response.start`` messages
    (which the server would reject anyway) do not change it. If body bytes
    are sent before any status, the status is taken to be 200. Messages are
    passed through untouched.

    Args:
        send: The downstream send callable.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self.status_code: int | None = None
        self.bytes_written = 0

    @property
    def started(self) -> bool:
        """Whether a status (explicit or implied) has been written."""
        return self.status_code is not None

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            if self.status_code is None:
                self.status_code = int(message["status"])
        elif message["type"] == "http.response.body":
            if self.status_code is None:
                self.status_code = int(HTTPStatus.OK)
            await self._send(message)
            self.bytes_written += len(message.get("body", b""))
            return
        await self._send(message)
