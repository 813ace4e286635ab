"""Gateway HTTP server - Entry point."""

from __future__ import annotations

import uvicorn

from rasputin.api.app import create_app
from rasputin.config import GatewayConfig
from rasputin.runtime.logging import configure_logging


def main() -> None:
    """Main entry point."""
    config = GatewayConfig.from_env()
    logger = configure_logging(config.log_level)

    app = create_app(config)

    logger.info("gateway.listen", extra={"host": config.api_host, "port": config.api_port})
    uvicorn.run(
        app,
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
