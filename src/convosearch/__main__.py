"""Entry point for the search API server."""

import asyncio
import contextlib
import sys

import structlog
import uvicorn

from convosearch.app import create_app
from convosearch.config import Settings
from convosearch.logging import configure_logging

logger = structlog.get_logger()


async def serve(settings: Settings) -> None:
    """Run uvicorn server until interrupted.

    uvicorn handles SIGTERM/SIGINT itself and runs the app lifespan,
    which closes storage on the way out.

    Args:
        settings: Server configuration.
    """
    app = create_app(settings)

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Entry point for python -m convosearch."""
    settings = Settings()
    configure_logging(debug=settings.debug)
    logger.info("search_index_config", extension_name=settings.extension_name)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(settings))

    sys.exit(0)


if __name__ == "__main__":
    main()
