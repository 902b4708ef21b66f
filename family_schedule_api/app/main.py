"""
Main entrypoint for the Family Schedule API.

This module assembles the FastAPI application: logging, the identity
middleware, error handlers and the versioned routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``, e.g.::

    uvicorn family_schedule_api.app.main:app --reload

On start-up the connection is pinged, the database migrations are
applied and the cascade rules the services rely on are verified; a
failure in any of these aborts start-up.  The connection pool is
disposed on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core import db
from .core.config import settings
from .core.errors import register_error_handlers
from .core.logging_config import setup_logging
from .core.security import HeaderIdentityResolver, IdentityResolver, install_identity_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database before serving and release the pool afterwards."""
    try:
        db.ping()
    except db.StoreError:
        logger.exception("Database connection failed")
        raise
    logger.info("Database connection OK")
    db.init_db()
    db.verify_cascade_rules()
    logger.info("%s %s ready", settings.project_name, settings.api_version)
    yield
    db.dispose_engine()


def create_app(identity_resolver: Optional[IdentityResolver] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    identity_resolver : Optional[IdentityResolver]
        Strategy used to identify the calling parent.  Defaults to a
        ``HeaderIdentityResolver`` built from the settings.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Initialise logging before anything else so that start-up can log.
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)
    app.state.identity_resolver = identity_resolver or HeaderIdentityResolver(
        header_name=settings.identity_header,
        strict=settings.identity_strict,
    )

    register_error_handlers(app)

    prefix = settings.api_prefix.rstrip("/")
    install_identity_middleware(
        app,
        public_paths={prefix + "/health", "/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json"},
    )

    app.include_router(v1_router, prefix=prefix)
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
