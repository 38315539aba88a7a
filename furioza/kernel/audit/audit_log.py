"""
Audit log service for append-only recording of privileged actions.

Every privileged mutation records its entry here inside the same
transaction. If the entry cannot be flushed the error propagates and the
unit of work rolls back the mutation with it.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.kernel.errors import ValidationError
from furioza.kernel.models.audit_log import AuditLogEntry, AuditAction
from furioza.logging_config import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 200


class AuditLog:
    """
    Service for managing the immutable audit log.

    Usage:
        audit_log = AuditLog(session)
        await audit_log.record(
            admin_id=actor.id,
            action=AuditAction.BAN_USER,
            target_user_id=target.id,
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        admin_id: uuid.UUID,
        action: AuditAction,
        target_user_id: Optional[uuid.UUID] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLogEntry:
        """
        Append an entry to the audit log.

        Flushes immediately so a failed write surfaces inside the caller's
        operation, before anything is committed.

        Args:
            admin_id: The actor who performed the action
            action: The action tag
            target_user_id: The profile affected, when the action targets one
            details: Additional structured data

        Returns:
            The created AuditLogEntry record
        """
        entry = AuditLogEntry(
            admin_id=admin_id,
            action=AuditAction(action),
            target_user_id=target_user_id,
            details=self._serialize_details(details or {}),
        )

        self.session.add(entry)
        await self.session.flush()

        logger.info(
            "Audit entry recorded",
            extra={
                "audit_action": entry.action.value,
                "admin_id": str(admin_id),
                "target_user_id": str(target_user_id) if target_user_id else None,
            },
        )
        return entry

    async def record_from_model(
        self,
        admin_id: uuid.UUID,
        action: AuditAction,
        details_model: BaseModel,
        target_user_id: Optional[uuid.UUID] = None,
    ) -> AuditLogEntry:
        """Record an entry using a Pydantic model as details payload."""
        details = details_model.model_dump(mode="json", exclude_none=True)
        return await self.record(
            admin_id=admin_id,
            action=action,
            target_user_id=target_user_id,
            details=details,
        )

    async def query(
        self,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditLogEntry]:
        """
        Get audit entries, newest first.

        Args:
            limit: Maximum number of entries to return (1..200)
            offset: Number of entries to skip

        Returns:
            List of AuditLogEntry records, newest first
        """
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")
        if offset < 0:
            raise ValidationError("offset must not be negative", field="offset")

        query = (
            select(AuditLogEntry)
            .order_by(desc(AuditLogEntry.created_at), desc(AuditLogEntry.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, action: Optional[AuditAction] = None) -> int:
        """Count entries, optionally for a single action tag."""
        query = select(func.count(AuditLogEntry.id))
        if action:
            query = query.where(AuditLogEntry.action == AuditAction(action).value)

        result = await self.session.execute(query)
        return result.scalar() or 0

    def _serialize_details(self, details: Dict[str, Any]) -> Dict[str, Any]:
        """Convert details values to JSON-serializable types."""
        return {key: self._serialize_value(value) for key, value in details.items()}

    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, dict):
            return self._serialize_details(value)
        if isinstance(value, (list, tuple, set)):
            return [self._serialize_value(v) for v in value]
        return value
