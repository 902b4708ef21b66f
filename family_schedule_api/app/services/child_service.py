"""
Business logic for children.

A child is always created together with the association row linking
it to the parent who registered it; both inserts run in one
transaction so a child without a parent is never visible.  Deleting
a child relies on the ``ON DELETE CASCADE`` rules of the schema to
remove its parent associations and schedules (see
``core.db.verify_cascade_rules``).

SECURITY: the CPF is stored exactly as submitted, without encryption
or hashing.
"""

import logging
from typing import Any, Dict, List, Optional

from family_schedule_api.app.core import db
from family_schedule_api.app.core.config import settings
from family_schedule_api.app.core.errors import Conflict, InternalFailure, NotFound, require_fields
from family_schedule_api.app.schemas.child import ChildCreate, ChildCreated, ChildRead

logger = logging.getLogger(__name__)


class ChildService:
    """Service for registering, listing and removing children.

    Ownership is only checked on deletion, and only when
    ``settings.enforce_ownership`` is on.  Listing is always scoped to
    the caller through the association table.
    """

    @classmethod
    def create_child(cls, data: ChildCreate, parent_id: Optional[int]) -> ChildCreated:
        """Insert the child and its association to ``parent_id`` atomically.

        Raises ``ValidationError`` listing every missing field,
        ``Conflict`` when the CPF is already registered and
        ``InternalFailure`` for any other store error.  In the error
        cases nothing is persisted.
        """
        require_fields(full_name=data.full_name, cpf=data.cpf, birth_date=data.birth_date)

        try:
            with db.transaction() as tx:
                result = tx.execute(
                    """
                    INSERT INTO children (full_name, cpf, birth_date)
                    VALUES (:full_name, :cpf, :birth_date)
                    """,
                    {
                        "full_name": data.full_name,
                        "cpf": data.cpf,
                        "birth_date": data.birth_date.isoformat(),
                    },
                )
                child_id = result.lastrowid
                tx.execute(
                    "INSERT INTO parent_children (parent_id, child_id) VALUES (:parent_id, :child_id)",
                    {"parent_id": parent_id, "child_id": child_id},
                )
                tx.commit()
        except db.DuplicateKeyError:
            logger.warning("Parent %s tried to register an already registered CPF", parent_id)
            raise Conflict("CPF already registered.") from None
        except db.StoreError:
            logger.exception("Failed to register child for parent %s", parent_id)
            raise InternalFailure() from None

        logger.info("Parent %s registered child %s", parent_id, child_id)
        return ChildCreated(id=child_id, full_name=data.full_name)

    @classmethod
    def list_children(cls, parent_id: Optional[int]) -> List[ChildRead]:
        """Return every child associated with ``parent_id``.

        No particular order is guaranteed.
        """
        try:
            rows = db.query(
                """
                SELECT c.id, c.full_name, c.cpf, c.birth_date, c.created_at
                FROM children c
                INNER JOIN parent_children pc ON c.id = pc.child_id
                WHERE pc.parent_id = :parent_id
                """,
                {"parent_id": parent_id},
            )
        except db.StoreError:
            logger.exception("Failed to list children for parent %s", parent_id)
            raise InternalFailure() from None
        return [cls._row_to_child_read(row) for row in rows]

    @classmethod
    def delete_child(cls, child_id: int, parent_id: Optional[int]) -> None:
        """Delete a child by id.

        Associations and schedules go with it through the schema's
        cascade rules.  Raises ``NotFound`` if no row was deleted.
        """
        if not db.is_row_id(child_id):
            logger.warning("Parent %s tried to delete missing child %s", parent_id, child_id)
            raise NotFound("Child not found.")
        if settings.enforce_ownership:
            sql = """
                DELETE FROM children
                WHERE id = :child_id
                  AND id IN (SELECT child_id FROM parent_children WHERE parent_id = :parent_id)
            """
        else:
            sql = "DELETE FROM children WHERE id = :child_id"
        try:
            result = db.execute(sql, {"child_id": child_id, "parent_id": parent_id})
        except db.StoreError:
            logger.exception("Failed to delete child %s", child_id)
            raise InternalFailure() from None
        if result.rowcount == 0:
            logger.warning("Parent %s tried to delete missing child %s", parent_id, child_id)
            raise NotFound("Child not found.")
        logger.info("Parent %s deleted child %s", parent_id, child_id)

    @classmethod
    def parent_owns_child(cls, parent_id: Optional[int], child_id: int) -> bool:
        """Tell whether ``child_id`` is associated with ``parent_id``."""
        if not db.is_row_id(child_id):
            return False
        rows = db.query(
            "SELECT 1 FROM parent_children WHERE parent_id = :parent_id AND child_id = :child_id",
            {"parent_id": parent_id, "child_id": child_id},
        )
        return bool(rows)

    @staticmethod
    def _row_to_child_read(row: Dict[str, Any]) -> ChildRead:
        """Convert a database row to a ``ChildRead`` schema instance."""
        cpf = row["cpf"]
        # Some drivers hand back text columns stored as BLOB as bytes.
        if isinstance(cpf, (bytes, bytearray, memoryview)):
            cpf = bytes(cpf).decode("utf-8")
        created_at = row.get("created_at")
        return ChildRead(
            id=row["id"],
            full_name=row["full_name"],
            cpf=cpf,
            birth_date=row["birth_date"],
            created_at=str(created_at) if created_at is not None else None,
        )
