"""
Immutable audit log of privileged actions.

Entries are written in the same transaction as the action they document.
This table is append-only - no updates or deletes allowed.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Integer, String, JSON, Index, Uuid, event
from sqlalchemy.orm import Mapped, Session, mapped_column

from furioza.kernel.errors import InvalidState
from furioza.kernel.models.base import Base, utcnow


class AuditAction(str, Enum):
    """Action tags recorded in the audit log."""

    # User administration
    CHANGE_ROLE = "CHANGE_ROLE"
    BAN_USER = "BAN_USER"
    UNBAN_USER = "UNBAN_USER"
    EDIT_PROFILE = "EDIT_PROFILE"

    # Permission matrix
    GRANT_PERMISSION = "GRANT_PERMISSION"
    REVOKE_PERMISSION = "REVOKE_PERMISSION"

    # Categories & transfers
    CREATE_CATEGORY = "CREATE_CATEGORY"
    DELETE_CATEGORY = "DELETE_CATEGORY"
    CREATE_TRANSFER = "CREATE_TRANSFER"
    DELETE_TRANSFER = "DELETE_TRANSFER"

    # Moderation
    CREATE_THREAD = "CREATE_THREAD"
    LOCK_THREAD = "LOCK_THREAD"
    UNLOCK_THREAD = "UNLOCK_THREAD"
    PIN_THREAD = "PIN_THREAD"
    UNPIN_THREAD = "UNPIN_THREAD"
    DELETE_THREAD = "DELETE_THREAD"
    DELETE_POST = "DELETE_POST"


class AuditLogEntry(Base):
    """
    One privileged action.

    ``id`` is an autoincrement integer so entries sharing a timestamp still
    have a total order.
    """

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Actor
    admin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )

    action: Mapped[AuditAction] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )

    target_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
    )

    details: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    # Set in Python so ordering does not depend on server clock resolution
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    __table_args__ = (
        Index("ix_audit_log_created_id", "created_at", "id"),
    )

    def __repr__(self) -> str:
        return f"<AuditLogEntry {self.action} admin={self.admin_id}>"


@event.listens_for(AuditLogEntry, "before_update")
def _refuse_update(mapper, connection, target):
    raise InvalidState("Audit log entries are immutable")


@event.listens_for(AuditLogEntry, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise InvalidState("Audit log entries cannot be deleted")


@event.listens_for(Session, "do_orm_execute")
def _refuse_bulk_changes(orm_execute_state):
    """Bulk UPDATE/DELETE statements bypass the mapper events above."""
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mapper = orm_execute_state.bind_mapper
    table = getattr(orm_execute_state.statement, "table", None)
    if (mapper is not None and mapper.class_ is AuditLogEntry) or table is AuditLogEntry.__table__:
        raise InvalidState("Audit log entries are immutable")
