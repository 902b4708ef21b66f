"""
Top-level router for version 1 of the API.

This router aggregates domain-specific routers (children, schedules,
health).  When new endpoints are added, update this file to include
their routers.
"""

from fastapi import APIRouter

from .endpoints import children, health, schedules

router = APIRouter()

router.include_router(children.router, prefix="/children", tags=["children"])
# The schedules router defines its own paths, including the nested
# ``/children/{child_id}/schedules``.  Do not give it a prefix.
router.include_router(schedules.router, tags=["schedules"])
router.include_router(health.router, tags=["health"])
