"""FastAPI application initialization and configuration module.

The application is assembled from explicit collaborators: the frozen
``ConnectorConfig`` derived from the settings, a ``DeviceTransport`` and the
``ListenerAddress`` the server is bound to. Nothing in the request path reads
global configuration.

Middleware layering (outermost first):
1. Starlette's server error middleware (never reached by request faults)
2. RequestMiddleware: correlation, allowlist, fault boundary, outcome log
3. Exception middleware: client and transport errors to status lines
4. Router: status and relay routes
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from hsm_connector.api.middleware.error_handler import register_exception_handlers
from hsm_connector.api.middleware.request_middleware import RequestMiddleware
from hsm_connector.api.routes import build_router
from hsm_connector.core.config import Settings, get_settings
from hsm_connector.core.listener import ListenerAddress
from hsm_connector.core.logging import setup_logging
from hsm_connector.infrastructure.transport import DeviceTransport, NullDeviceTransport


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Log start-up and shutdown of the connector.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.
    """
    logger.info(
        "Connector startup complete - {} v{} listening on {}",
        app_instance.title,
        app_instance.version,
        app_instance.state.listener,
    )

    yield

    logger.info("Connector shutdown complete")


def create_app(
    settings: Settings | None = None,
    *,
    transport: DeviceTransport | None = None,
    listener: ListenerAddress | None = None,
) -> FastAPI:
    """Create and configure the connector application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().
        transport: Device transport to relay to. Defaults to NullDeviceTransport.
        listener: Listener address reported on the status route. Defaults to
            the configured listen address.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()
    if transport is None:
        transport = NullDeviceTransport()
    if listener is None:
        listener = settings.listener_address()

    setup_logging(settings)

    config = settings.connector_config()

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    application.state.listener = listener

    register_exception_handlers(application)

    application.add_middleware(RequestMiddleware, config=config)

    application.include_router(build_router(config, transport, listener))

    if config.allowlisting_enabled:
        logger.info(
            "Host header allowlisting enabled",
            allowlist=sorted(config.allowlist.hosts),
        )

    return application
