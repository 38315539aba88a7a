"""
Ban enforcement: the single gate every mutating action passes through.
"""

import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from furioza.kernel.audit.audit_log import AuditLog
from furioza.kernel.errors import PermissionDenied
from furioza.kernel.identity.actor import Actor
from furioza.kernel.identity.identity_service import IdentityService
from furioza.kernel.models.audit_log import AuditAction
from furioza.kernel.models.permission import PermissionKey
from furioza.kernel.permissions.permission_service import AuthorizationService
from furioza.logging_config import get_logger

logger = get_logger(__name__)


def is_banned(actor: Actor) -> bool:
    """Ban flag of the given snapshot."""
    return actor.is_banned


class BanEnforcement:
    """Checks and toggles the ban flag against the profile store."""

    def __init__(self, session: AsyncSession, authorization: Optional[AuthorizationService] = None):
        self.session = session
        self.identity = IdentityService(session)
        self.authorization = authorization or AuthorizationService(session)
        self.audit_log = AuditLog(session)

    async def ensure_not_banned(self, actor: Actor) -> Actor:
        """
        Re-read the actor and refuse if banned.

        Returns:
            The fresh Actor snapshot

        Raises:
            PermissionDenied: reason "banned"
        """
        fresh = await self.identity.resolve_actor(actor.id)
        if is_banned(fresh):
            logger.warning("Banned actor refused", extra={"actor_id": str(actor.id)})
            raise PermissionDenied("Banned users cannot perform this action", reason="banned")
        return fresh

    async def toggle_ban(self, admin: Actor, target_id: uuid.UUID) -> bool:
        """
        Flip the target's ban flag.

        Returns:
            The new ban state

        Raises:
            PermissionDenied: If admin lacks ban_users or targets themselves
            NotFound: If the target profile does not exist
        """
        await self.authorization.authorize(admin, PermissionKey.BAN_USERS, target_id=target_id)

        target = await self.identity.require_profile(target_id, for_update=True)
        target.is_banned = not target.is_banned
        await self.session.flush()

        await self.audit_log.record(
            admin_id=admin.id,
            action=AuditAction.BAN_USER if target.is_banned else AuditAction.UNBAN_USER,
            target_user_id=target.id,
        )
        logger.info(
            "Ban toggled",
            extra={"target_id": str(target.id), "banned": target.is_banned},
        )
        return target.is_banned
