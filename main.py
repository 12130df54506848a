"""Main entry point for running the HSM connector daemon."""

import uvicorn
from loguru import logger

from hsm_connector.api.main import create_app
from hsm_connector.core.config import get_settings
from hsm_connector.core.listener import LocalSocketAddress, TcpAddress
from hsm_connector.core.logging import setup_logging

# Route uvicorn's own loggers through Loguru
LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "default": {
            "class": "hsm_connector.core.logging.InterceptHandler",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.access": {
            "handlers": ["default"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}


def main() -> None:
    """Main entry point for the connector daemon."""
    settings = get_settings()

    # Setup logging first
    setup_logging(settings)

    listener = settings.listener_address()
    app = create_app(settings, listener=listener)

    logger.info("Starting connector on {}", listener)

    match listener:
        case LocalSocketAddress(name=name):
            uvicorn.run(app, uds=name, log_config=LOG_CONFIG)
        case TcpAddress(host=host, port=port):
            uvicorn.run(app, host=host, port=port, log_config=LOG_CONFIG)


if __name__ == "__main__":
    main()
