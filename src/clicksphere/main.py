"""
ClickSphere server entry point.

Reads CLICKSPHERE_* environment variables, configures logging and serves the
FastHTML app with uvicorn.
"""

import logging

import uvicorn

from .adapters.fasthtml import create_app
from .app.configuration import configure_logging, get_config

logger = logging.getLogger(__name__)


def main() -> None:
    config = get_config()
    configure_logging(config.logging)
    app = create_app(config)
    logger.info(f"ClickSphere server running on http://{config.web.host}:{config.web.port}")
    uvicorn.run(app, host=config.web.host, port=config.web.port, log_level=config.logging.level.lower())


if __name__ == "__main__":
    main()
