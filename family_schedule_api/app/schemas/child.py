"""
Pydantic models for child records.

Fields of ``ChildCreate`` are optional at the parsing level so that
the service can report every missing field in one response instead
of failing on the first one.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class ChildCreate(BaseModel):
    """Schema for registering a child under the calling parent."""

    full_name: Optional[str] = Field(None, description="Child's full name")
    cpf: Optional[str] = Field(None, description="National identifier (CPF), unique across all children")
    birth_date: Optional[date] = Field(None, description="Date of birth (YYYY-MM-DD)")


class ChildCreated(BaseModel):
    id: int
    full_name: str
    message: str = "Child registered successfully."


class ChildRead(BaseModel):
    """Schema for reading a child from the API."""

    id: int
    full_name: str
    cpf: str
    birth_date: date
    created_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
