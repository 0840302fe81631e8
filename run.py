"""Entry point for the Centrum Listings API.

Serves the FastAPI application with Uvicorn.  Host and port are taken
from the ``HOST`` and ``PORT`` environment variables (defaults
``0.0.0.0`` and ``3000``); see ``centrum_api/app/core/config.py`` for
the remaining settings.

Usage:
    python run.py
"""
import logging

from uvicorn import Config, Server

from centrum_api.app.core.config import settings
from centrum_api.app.main import app


def main() -> None:
    """Run the API server until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("Server listening on %s:%s", settings.host, settings.port)
    server.run()


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
