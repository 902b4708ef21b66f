"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  A ``.env`` file in the working directory is
loaded first so local development can keep credentials out of the
shell.  Defaults are provided for all fields; in a production
deployment you should override them via environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Family Schedule API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    # Prefix for all routes.  Empty by default so that the routes are
    # served at ``/children`` and ``/schedules``.
    api_prefix: str = os.getenv("API_PREFIX", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("LOG_FILE") or None

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # SQLAlchemy database URL.  Relative SQLite paths are resolved
    # against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///family_schedule.db")
    # Fixed capacity of the shared connection pool.  Requests beyond
    # this capacity wait up to ``db_pool_timeout`` seconds.
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "10"))
    db_pool_timeout: float = float(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_echo: bool = _env_flag("DB_ECHO", "false")

    # Name of the header carrying the caller's parent identifier.
    identity_header: str = os.getenv("IDENTITY_HEADER", "X-User-Id")
    # When true a non-numeric identity header is rejected with 401.
    # When false the header is parsed permissively (leading digits
    # only) and a value without digits yields an undefined parent id.
    identity_strict: bool = _env_flag("IDENTITY_STRICT", "true")

    # When true, child deletion and all schedule operations only act on
    # children associated with the calling parent.
    enforce_ownership: bool = _env_flag("ENFORCE_OWNERSHIP", "false")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
