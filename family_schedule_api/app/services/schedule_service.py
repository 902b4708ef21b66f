"""
Business logic for schedules.

Schedules are appointments attached to one child and stamped with the
parent who created them.  Listing is always ordered by start time.
Unless ``settings.enforce_ownership`` is on, none of the operations
check that the caller is associated with the child involved, and no
operation checks that a schedule starts before it ends.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from family_schedule_api.app.core import db
from family_schedule_api.app.core.config import settings
from family_schedule_api.app.core.errors import InternalFailure, NotFound, require_fields
from family_schedule_api.app.schemas.schedule import ScheduleCreate, ScheduleCreated, ScheduleRead
from family_schedule_api.app.services.child_service import ChildService

logger = logging.getLogger(__name__)


def to_utc_text(value: datetime) -> str:
    """Render a timestamp as naive UTC text with a fixed width.

    Aware values are converted to UTC; naive values are taken to be UTC
    already.  Fixed-width text sorts in chronological order, which the
    start-time ordering of listings relies on.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="microseconds")


class ScheduleService:
    """Service for creating, listing and deleting schedules."""

    @classmethod
    def _check_ownership(cls, parent_id: Optional[int], child_id: int) -> None:
        if not settings.enforce_ownership:
            return
        try:
            owned = ChildService.parent_owns_child(parent_id, child_id)
        except db.StoreError:
            logger.exception("Failed to check ownership of child %s", child_id)
            raise InternalFailure() from None
        if not owned:
            logger.warning("Parent %s is not associated with child %s", parent_id, child_id)
            raise NotFound("Child not found.")

    @classmethod
    def create_schedule(cls, data: ScheduleCreate, parent_id: Optional[int]) -> ScheduleCreated:
        """Insert a schedule stamped with ``parent_id``.

        ``description`` is optional; every other field is required and
        all missing ones are reported together.  A ``child_id`` that
        does not reference an existing child is a store error.
        """
        require_fields(
            child_id=data.child_id,
            title=data.title,
            start_time=data.start_time,
            end_time=data.end_time,
            type=data.type,
        )
        cls._check_ownership(parent_id, data.child_id)
        try:
            result = db.execute(
                """
                INSERT INTO schedules (child_id, created_by_parent_id, title, description, start_time, end_time, type)
                VALUES (:child_id, :created_by_parent_id, :title, :description, :start_time, :end_time, :type)
                """,
                {
                    "child_id": data.child_id,
                    "created_by_parent_id": parent_id,
                    "title": data.title,
                    "description": data.description,
                    "start_time": to_utc_text(data.start_time),
                    "end_time": to_utc_text(data.end_time),
                    "type": data.type,
                },
            )
        except db.StoreError:
            logger.exception("Failed to create schedule for child %s", data.child_id)
            raise InternalFailure() from None
        logger.info("Parent %s created schedule %s for child %s", parent_id, result.lastrowid, data.child_id)
        return ScheduleCreated(id=result.lastrowid)

    @classmethod
    def list_schedules(cls, child_id: int, parent_id: Optional[int]) -> List[ScheduleRead]:
        """Return the child's schedules ordered by start time, earliest first."""
        cls._check_ownership(parent_id, child_id)
        if not db.is_row_id(child_id):
            return []
        try:
            rows = db.query(
                """
                SELECT id, child_id, created_by_parent_id, title, description,
                       start_time, end_time, type, created_at
                FROM schedules
                WHERE child_id = :child_id
                ORDER BY start_time ASC
                """,
                {"child_id": child_id},
            )
        except db.StoreError:
            logger.exception("Failed to list schedules for child %s", child_id)
            raise InternalFailure() from None
        return [cls._row_to_schedule_read(row) for row in rows]

    @classmethod
    def delete_schedule(cls, schedule_id: int, parent_id: Optional[int]) -> None:
        """Delete a schedule by id; raises ``NotFound`` if nothing was deleted."""
        if not db.is_row_id(schedule_id):
            logger.warning("Parent %s tried to delete missing schedule %s", parent_id, schedule_id)
            raise NotFound("Schedule not found.")
        if settings.enforce_ownership:
            sql = """
                DELETE FROM schedules
                WHERE id = :schedule_id
                  AND child_id IN (SELECT child_id FROM parent_children WHERE parent_id = :parent_id)
            """
        else:
            sql = "DELETE FROM schedules WHERE id = :schedule_id"
        try:
            result = db.execute(sql, {"schedule_id": schedule_id, "parent_id": parent_id})
        except db.StoreError:
            logger.exception("Failed to delete schedule %s", schedule_id)
            raise InternalFailure() from None
        if result.rowcount == 0:
            logger.warning("Parent %s tried to delete missing schedule %s", parent_id, schedule_id)
            raise NotFound("Schedule not found.")
        logger.info("Parent %s deleted schedule %s", parent_id, schedule_id)

    @staticmethod
    def _row_to_schedule_read(row: Dict[str, Any]) -> ScheduleRead:
        created_at = row.get("created_at")
        return ScheduleRead(
            id=row["id"],
            child_id=row["child_id"],
            created_by_parent_id=row["created_by_parent_id"],
            title=row["title"],
            description=row["description"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            type=row["type"],
            created_at=str(created_at) if created_at is not None else None,
        )
