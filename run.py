"""Entry point for the Family Schedule API.

Starts the FastAPI application with Uvicorn.  Host and port are read
from the ``HOST`` and ``PORT`` settings (defaults ``0.0.0.0`` and
``3000``); database credentials and the other options come from the
environment or a ``.env`` file in the working directory.

Usage:
    python run.py
"""
import asyncio

from uvicorn import Config, Server

from family_schedule_api.app.core.config import settings
from family_schedule_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
