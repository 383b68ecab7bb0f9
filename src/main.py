"""
Main application entry point for the pipeline monitoring service.

Run with ``python -m src.main``; host and port come from ``HOST`` and
``PORT`` (defaults 0.0.0.0:8000).
"""

import os

import uvicorn

from src.core.exceptions import ConfigurationError
from src.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


def main() -> None:
    host = os.getenv("HOST", DEFAULT_HOST)
    try:
        port = int(os.getenv("PORT", str(DEFAULT_PORT)))
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid PORT: {os.getenv('PORT')}",
            config_section="server",
            suggested_action="Set PORT to an integer",
        ) from e

    logger.info("Starting web server", host=host, port=port)
    uvicorn.run("src.web_interface.app:get_app", factory=True, host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
