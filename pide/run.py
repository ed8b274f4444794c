"""Entry point to run the optional HTTP selection channel."""

import logging

import uvicorn

from . import config

logger = logging.getLogger(__name__)


def main(force: bool = False) -> bool:
    """Serve the HTTP channel. Returns False when it is disabled."""
    if not (force or config.HTTP_ENABLED):
        logger.warning("HTTP selection channel is disabled; set PIDE_HTTP_ENABLED=1 to enable it")
        return False
    uvicorn.run(
        "pide.server:app",
        host=config.HTTP_HOST,
        port=config.HTTP_PORT,
    )
    return True


if __name__ == "__main__":
    main()
