"""
Child endpoints for API v1.

All routes are scoped to the parent named in the identity header.
Errors raised by ``ChildService`` are rendered by the handlers in
``core.errors``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from family_schedule_api.app.core.security import get_current_parent
from family_schedule_api.app.schemas.child import ChildCreate, ChildCreated, ChildRead
from family_schedule_api.app.schemas.common import MessageResponse
from family_schedule_api.app.services.child_service import ChildService

router = APIRouter()


@router.post("", response_model=ChildCreated, status_code=status.HTTP_201_CREATED)
def create_child(
    child: ChildCreate,
    parent_id: Optional[int] = Depends(get_current_parent),
) -> ChildCreated:
    """Register a child and associate it with the calling parent.

    Requires ``full_name``, ``cpf`` and ``birth_date``.  Returns 409 if
    the CPF is already registered.
    """
    return ChildService.create_child(child, parent_id)


@router.get("", response_model=List[ChildRead])
def list_children(parent_id: Optional[int] = Depends(get_current_parent)) -> List[ChildRead]:
    """List the children associated with the calling parent."""
    return ChildService.list_children(parent_id)


@router.delete("/{child_id}", response_model=MessageResponse)
def delete_child(
    child_id: int,
    parent_id: Optional[int] = Depends(get_current_parent),
) -> MessageResponse:
    """Delete a child together with its associations and schedules."""
    ChildService.delete_child(child_id, parent_id)
    return MessageResponse(message="Child deleted successfully.")
