"""Exception handlers for the connector application.

Client errors and transport errors are converted into bare status line
responses here, with the detail going to the log only. ``InternalError`` and
any other exception deliberately have no handler: they travel up to the
request middleware, whose fault boundary logs them and answers with 500.
"""

from fastapi import FastAPI, Request
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from hsm_connector.api.utils.responses import status_line_response
from hsm_connector.core.exceptions import ClientError, TransportError


async def client_error_handler(request: Request, exc: Exception) -> Response:
    """Handle ClientError exceptions (400, 403, 405).

    Args:
        request: The request that caused the exception
        exc: The ClientError exception to handle

    Returns:
        Response: Status line response, with any headers the error carries

    Raises:
        TypeError: If exc is not a ClientError instance
    """
    if not isinstance(exc, ClientError):
        raise TypeError(f"Expected ClientError, got {type(exc).__name__}")

    logger.log(
        exc.log_level,
        "Rejected request: {}",
        exc.message,
        error_code=exc.error_code,
        status_code=int(exc.status_code),
        path=request.url.path,
        **exc.context,
    )
    return status_line_response(exc.status_code, exc.headers)


async def transport_error_handler(request: Request, exc: Exception) -> Response:
    """Handle TransportError exceptions.

    The device error is logged in full; the client only gets a 500 status line.

    Raises:
        TypeError: If exc is not a TransportError instance
    """
    if not isinstance(exc, TransportError):
        raise TypeError(f"Expected TransportError, got {type(exc).__name__}")

    logger.opt(exception=exc.cause).log(
        exc.log_level,
        "Failed device proxy: {}",
        exc.message,
        error_code=exc.error_code,
        path=request.url.path,
        **exc.context,
    )
    return status_line_response(exc.status_code)


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException, e.g. 404 for unknown routes.

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        path=request.url.path,
        detail=exc.detail,
    )
    return status_line_response(exc.status_code, exc.headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the connector exception handlers with the application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(TransportError, transport_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    logger.debug("Exception handlers registered")
