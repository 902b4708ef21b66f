"""Liveness endpoint; reachable without the identity header."""

import logging

from fastapi import APIRouter

from family_schedule_api.app.core import db
from family_schedule_api.app.core.errors import StoreUnavailable
from family_schedule_api.app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Ping the database."""
    try:
        db.ping()
    except db.StoreError:
        logger.exception("Health check failed")
        raise StoreUnavailable() from None
    return HealthResponse()
