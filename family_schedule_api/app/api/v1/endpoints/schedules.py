"""
Schedule endpoints for API v1.

The router defines full paths because schedules are listed under
their child (``/children/{child_id}/schedules``) but created and
deleted under ``/schedules``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from family_schedule_api.app.core.security import get_current_parent
from family_schedule_api.app.schemas.common import MessageResponse
from family_schedule_api.app.schemas.schedule import ScheduleCreate, ScheduleCreated, ScheduleRead
from family_schedule_api.app.services.schedule_service import ScheduleService

router = APIRouter()


@router.post("/schedules", response_model=ScheduleCreated, status_code=status.HTTP_201_CREATED)
def create_schedule(
    schedule: ScheduleCreate,
    parent_id: Optional[int] = Depends(get_current_parent),
) -> ScheduleCreated:
    """Create a schedule for a child.

    Requires ``child_id``, ``title``, ``start_time``, ``end_time`` and
    ``type``; ``description`` is optional.
    """
    return ScheduleService.create_schedule(schedule, parent_id)


@router.get("/children/{child_id}/schedules", response_model=List[ScheduleRead])
def list_child_schedules(
    child_id: int,
    parent_id: Optional[int] = Depends(get_current_parent),
) -> List[ScheduleRead]:
    """List a child's schedules, earliest start first."""
    return ScheduleService.list_schedules(child_id, parent_id)


@router.delete("/schedules/{schedule_id}", response_model=MessageResponse)
def delete_schedule(
    schedule_id: int,
    parent_id: Optional[int] = Depends(get_current_parent),
) -> MessageResponse:
    ScheduleService.delete_schedule(schedule_id, parent_id)
    return MessageResponse(message="Schedule deleted successfully.")
