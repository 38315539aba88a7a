"""
Authorization service for the dynamic role -> permission matrix.
"""

import uuid
from typing import Dict, FrozenSet, Optional, Union

from sqlalchemy import delete, event, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.kernel.audit.audit_log import AuditLog
from furioza.kernel.audit.details import PermissionChangedDetails, RoleChangedDetails
from furioza.kernel.errors import InvalidState, PermissionDenied, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.identity.identity_service import IdentityService
from furioza.kernel.models.audit_log import AuditAction
from furioza.kernel.models.permission import PermissionKey, RolePermission
from furioza.kernel.models.user import Profile
from furioza.kernel.roles import ROLE_ORDER, Role, parse_role
from furioza.logging_config import get_logger

logger = get_logger(__name__)

PermissionLike = Union[PermissionKey, str]

# Permissions an actor may never exercise on themselves
SELF_PROTECTED_PERMISSIONS = frozenset({
    PermissionKey.MANAGE_ROLES.value,
    PermissionKey.BAN_USERS.value,
})

_KNOWN_PERMISSIONS = frozenset(key.value for key in PermissionKey)


def parse_permission(value: PermissionLike) -> str:
    """Return the canonical permission key or raise ValidationError."""
    key = value.value if isinstance(value, PermissionKey) else value
    if key not in _KNOWN_PERMISSIONS:
        raise ValidationError(f"Unknown permission: {value!r}", field="permission")
    return key


class PermissionIndex:
    """
    In-memory role -> granted permissions map.

    A read-through cache over committed ``role_permissions`` rows: loaded
    from the store on first use and dropped whenever a session that changed
    the matrix commits. Never the source of truth.
    """

    def __init__(self) -> None:
        self._grants: Optional[Dict[Role, FrozenSet[str]]] = None
        self._generation = 0

    @property
    def loaded(self) -> bool:
        return self._grants is not None

    def invalidate(self) -> None:
        self._grants = None
        self._generation += 1

    async def rebuild(self, session: AsyncSession) -> Dict[Role, FrozenSet[str]]:
        generation = self._generation
        result = await session.execute(
            select(RolePermission.role, RolePermission.permission)
        )
        grants: Dict[Role, set] = {role: set() for role in ROLE_ORDER}
        for role, permission in result.all():
            grants[parse_role(role)].add(permission)
        loaded = {role: frozenset(perms) for role, perms in grants.items()}
        # A commit that invalidated the index mid-read may have changed the rows
        if generation == self._generation:
            self._grants = loaded
        return loaded

    async def grants(self, session: AsyncSession) -> Dict[Role, FrozenSet[str]]:
        if self._grants is not None:
            return self._grants
        return await self.rebuild(session)

    def has(self, role: Role, permission: str) -> bool:
        if self._grants is None:
            raise RuntimeError("PermissionIndex used before it was loaded")
        return permission in self._grants.get(parse_role(role), frozenset())

    def snapshot(self) -> Dict[Role, FrozenSet[str]]:
        if self._grants is None:
            raise RuntimeError("PermissionIndex used before it was loaded")
        return dict(self._grants)


_permission_index: Optional[PermissionIndex] = None

# session.info keys for a session that changed the matrix
_PENDING_INDEX_KEY = "furioza.pending_permission_index"
_SHARED_INDEX_KEY = "furioza.shared_permission_index"


def get_permission_index() -> PermissionIndex:
    """Get or create the process-wide permission index."""
    global _permission_index
    if _permission_index is None:
        _permission_index = PermissionIndex()
    return _permission_index


def _publish_index(session) -> None:
    session.info.pop(_PENDING_INDEX_KEY, None)
    shared = session.info.pop(_SHARED_INDEX_KEY, None)
    if shared is not None:
        shared.invalidate()


def _discard_index(session) -> None:
    # The shared index never saw the rolled back change
    session.info.pop(_PENDING_INDEX_KEY, None)
    session.info.pop(_SHARED_INDEX_KEY, None)


def _invalidate_on_commit(session: AsyncSession, shared: PermissionIndex) -> None:
    """Drop the shared index once this session's matrix change commits."""
    sync_session = session.sync_session
    sync_session.info[_SHARED_INDEX_KEY] = shared
    if not event.contains(sync_session, "after_commit", _publish_index):
        event.listen(sync_session, "after_commit", _publish_index)
    if not event.contains(sync_session, "after_rollback", _discard_index):
        event.listen(sync_session, "after_rollback", _discard_index)


class AuthorizationService:
    """
    Resolves whether an actor may perform a permission-gated action.

    Decision order:
    1. Banned actors are denied every gated action
    2. Self-protection: nobody manages their own role or ban
    3. Allowed iff (role, permission) is granted

    A session that grants or revokes decides on its own uncommitted matrix;
    every other session keeps seeing committed grants until it commits.
    """

    def __init__(self, session: AsyncSession, index: Optional[PermissionIndex] = None):
        self.session = session
        self.shared_index = index or get_permission_index()
        self.identity = IdentityService(session)
        self.audit_log = AuditLog(session)

    @property
    def index(self) -> PermissionIndex:
        return self.session.sync_session.info.get(_PENDING_INDEX_KEY, self.shared_index)

    async def can(
        self,
        actor: Actor,
        permission: PermissionLike,
        target_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """
        Check a permission against the given actor snapshot.

        Unknown permission keys are denied.
        """
        return await self._denial_reason(actor, permission, target_id) is None

    async def authorize(
        self,
        actor: Actor,
        permission: PermissionLike,
        target_id: Optional[uuid.UUID] = None,
    ) -> Actor:
        """
        Re-read the actor from the store and require the permission.

        Returns:
            The fresh Actor snapshot the decision was made on

        Raises:
            PermissionDenied: With reason banned, self_protection or missing_permission
        """
        fresh = await self.identity.resolve_actor(actor.id)
        reason = await self._denial_reason(fresh, permission, target_id)
        if reason is not None:
            key = permission.value if isinstance(permission, PermissionKey) else str(permission)
            logger.warning(
                "Permission denied",
                extra={"actor_id": str(actor.id), "permission": key, "reason": reason},
            )
            raise PermissionDenied(
                f"Permission '{key}' denied ({reason})",
                reason=reason,
                permission=key,
            )
        return fresh

    async def _denial_reason(
        self,
        actor: Actor,
        permission: PermissionLike,
        target_id: Optional[uuid.UUID],
    ) -> Optional[str]:
        if actor.is_banned:
            return "banned"
        try:
            key = parse_permission(permission)
        except ValidationError:
            return "missing_permission"
        if key in SELF_PROTECTED_PERMISSIONS and target_id is not None and target_id == actor.id:
            return "self_protection"
        grants = await self.index.grants(self.session)
        if key not in grants.get(parse_role(actor.role), frozenset()):
            return "missing_permission"
        return None

    async def get_matrix(self) -> Dict[Role, FrozenSet[str]]:
        """Current grants per role, in canonical role order."""
        return dict(await self.index.grants(self.session))

    async def grant_permission(
        self,
        admin: Actor,
        role: Union[Role, str],
        permission: PermissionLike,
    ) -> RolePermission:
        """
        Grant a permission to a role.

        Raises:
            PermissionDenied: If admin lacks manage_roles
            ValidationError: Unknown role or permission
            InvalidState: If the pair is already granted
        """
        await self.authorize(admin, PermissionKey.MANAGE_ROLES)
        role = parse_role(role)
        key = parse_permission(permission)

        if await self._find_grant(role, key) is not None:
            raise InvalidState(f"Role '{role.value}' already has '{key}'")

        grant = RolePermission(role=role, permission=key)
        self.session.add(grant)
        await self.session.flush()

        await self.audit_log.record_from_model(
            admin_id=admin.id,
            action=AuditAction.GRANT_PERMISSION,
            details_model=PermissionChangedDetails(role=role.value, permission=key),
        )
        await self._stage_index()
        return grant

    async def revoke_permission(
        self,
        admin: Actor,
        role: Union[Role, str],
        permission: PermissionLike,
    ) -> None:
        """
        Revoke a permission from a role.

        Raises:
            PermissionDenied: If admin lacks manage_roles
            ValidationError: Unknown role or permission
            InvalidState: If the pair is not granted
        """
        await self.authorize(admin, PermissionKey.MANAGE_ROLES)
        role = parse_role(role)
        key = parse_permission(permission)

        result = await self.session.execute(
            delete(RolePermission).where(
                RolePermission.role == role.value,
                RolePermission.permission == key,
            )
        )
        if result.rowcount == 0:
            raise InvalidState(f"Role '{role.value}' does not have '{key}'")

        await self.audit_log.record_from_model(
            admin_id=admin.id,
            action=AuditAction.REVOKE_PERMISSION,
            details_model=PermissionChangedDetails(role=role.value, permission=key),
        )
        await self._stage_index()

    async def change_role(
        self,
        admin: Actor,
        target_id: uuid.UUID,
        new_role: Union[Role, str],
    ) -> Profile:
        """
        Assign a new role to another profile.

        Raises:
            PermissionDenied: If admin lacks manage_roles or targets themselves
            NotFound: If the target profile does not exist
            InvalidState: If the target already holds the role
        """
        await self.authorize(admin, PermissionKey.MANAGE_ROLES, target_id=target_id)
        new_role = parse_role(new_role)

        target = await self.identity.require_profile(target_id, for_update=True)
        previous = parse_role(target.role)
        if previous == new_role:
            raise InvalidState(f"Profile already has role '{new_role.value}'")

        target.role = new_role
        await self.session.flush()

        await self.audit_log.record_from_model(
            admin_id=admin.id,
            action=AuditAction.CHANGE_ROLE,
            target_user_id=target.id,
            details_model=RoleChangedDetails(newRole=new_role.value, previousRole=previous.value),
        )
        logger.info(
            "Role changed",
            extra={"target_id": str(target.id), "previous_role": previous.value, "new_role": new_role.value},
        )
        return target

    async def _find_grant(self, role: Role, key: str) -> Optional[RolePermission]:
        result = await self.session.execute(
            select(RolePermission).where(
                RolePermission.role == role.value,
                RolePermission.permission == key,
            )
        )
        return result.scalar_one_or_none()

    async def _stage_index(self) -> None:
        pending = PermissionIndex()
        await pending.rebuild(self.session)
        self.session.sync_session.info[_PENDING_INDEX_KEY] = pending
        _invalidate_on_commit(self.session, self.shared_index)


async def bootstrap_permissions(session: AsyncSession) -> int:
    """
    Seed the matrix on first start: the admin role gets every permission.

    Does nothing once any grant exists. Returns the number of grants added.
    """
    result = await session.execute(select(func.count(RolePermission.id)))
    if result.scalar():
        return 0

    for key in PermissionKey:
        session.add(RolePermission(role=Role.ADMIN, permission=key.value))
    await session.flush()
    _invalidate_on_commit(session, get_permission_index())

    logger.info("Seeded admin permissions", extra={"count": len(PermissionKey)})
    return len(PermissionKey)
