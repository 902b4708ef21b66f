"""
Pydantic models for schedule (appointment) records.

A schedule belongs to exactly one child and records the parent who
created it.  No relation between ``start_time`` and ``end_time`` is
enforced.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ScheduleCreate(BaseModel):
    child_id: Optional[int] = Field(None, description="Child the appointment belongs to")
    title: Optional[str] = Field(None, description="Short title, e.g. 'Consulta'")
    description: Optional[str] = Field(None, description="Optional free text")
    start_time: Optional[datetime] = Field(None, description="Start (ISO 8601)")
    end_time: Optional[datetime] = Field(None, description="End (ISO 8601)")
    type: Optional[str] = Field(None, description="Free-form category tag, e.g. 'medico'")


class ScheduleCreated(BaseModel):
    id: int
    message: str = "Schedule created successfully."


class ScheduleRead(BaseModel):
    """Schema for reading a schedule from the API."""

    id: int
    child_id: int
    created_by_parent_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    type: str
    created_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
