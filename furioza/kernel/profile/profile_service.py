"""
Profile service: self-service edits and admin profile edits.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Dict, Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.config import get_settings
from furioza.kernel.audit.audit_log import AuditLog
from furioza.kernel.audit.details import ProfileEditedDetails
from furioza.kernel.errors import CooldownActive, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.identity.identity_service import IdentityService
from furioza.kernel.models.audit_log import AuditAction
from furioza.kernel.models.base import utcnow
from furioza.kernel.models.permission import PermissionKey
from furioza.kernel.models.user import Profile
from furioza.kernel.permissions.ban import BanEnforcement
from furioza.kernel.permissions.permission_service import AuthorizationService
from furioza.kernel.profile.cooldown import CooldownDecision, MutationCooldownGuard, ProfileField
from furioza.kernel.storage.blob_store import BlobStore
from furioza.logging_config import get_logger

logger = get_logger(__name__)

_EMAIL = TypeAdapter(EmailStr)

AVATAR_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp"})
MAX_DESCRIPTION_LENGTH = 2000


def normalize_email(value: str) -> str:
    try:
        return _EMAIL.validate_python(value.strip()).lower()
    except PydanticValidationError:
        raise ValidationError("Invalid email address", field="email") from None


class ProfileService:
    """
    Profile mutations.

    Email and avatar changes are cooldown-gated: the new value and the
    change stamp are written by one conditional UPDATE, so the window always
    restarts from the most recent accepted change.
    """

    def __init__(
        self,
        session: AsyncSession,
        guard: Optional[MutationCooldownGuard] = None,
        authorization: Optional[AuthorizationService] = None,
    ):
        self.session = session
        self.settings = get_settings()
        self.guard = guard or MutationCooldownGuard()
        self.identity = IdentityService(session)
        self.authorization = authorization or AuthorizationService(session)
        self.bans = BanEnforcement(session, self.authorization)
        self.audit_log = AuditLog(session)

    async def cooldown_status(self, actor: Actor) -> Dict[ProfileField, CooldownDecision]:
        """Current cooldown state of every gated field (read only)."""
        fresh = await self.identity.resolve_actor(actor.id)
        now = utcnow()
        return {field: self.guard.can_mutate(fresh, field, now) for field in ProfileField}

    async def update_description(self, actor: Actor, description: str) -> Profile:
        await self.bans.ensure_not_banned(actor)
        description = description.strip()
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description is limited to {MAX_DESCRIPTION_LENGTH} characters",
                field="description",
            )

        profile = await self.identity.require_profile(actor.id, for_update=True)
        profile.description = description or None
        await self.session.flush()
        return profile

    async def update_email(self, actor: Actor, email: str) -> Profile:
        """
        Change the actor's own email.

        Raises:
            PermissionDenied: If the actor is banned
            ValidationError: If the address is malformed
            CooldownActive: If the previous change is less than the cooldown ago
        """
        email = normalize_email(email)
        fresh = await self.bans.ensure_not_banned(actor)
        self.guard.ensure_can_mutate(fresh, ProfileField.EMAIL)

        profile = await self._write_guarded(actor.id, ProfileField.EMAIL, {"email": email})
        logger.info("Email changed", extra={"profile_id": str(actor.id)})
        return profile

    async def update_avatar(
        self,
        actor: Actor,
        filename: str,
        data: bytes,
        blob_store: BlobStore,
    ) -> Profile:
        """
        Upload a new avatar and point the profile at it.

        The cooldown is checked before the upload so refused changes cost
        nothing, and again in the write.

        Raises:
            PermissionDenied: If the actor is banned
            ValidationError: Empty, oversized or non-image upload
            CooldownActive: If the previous change is less than the cooldown ago
        """
        fresh = await self.bans.ensure_not_banned(actor)
        self.guard.ensure_can_mutate(fresh, ProfileField.AVATAR)

        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if extension not in AVATAR_EXTENSIONS:
            raise ValidationError("Avatar must be a PNG, JPEG, GIF or WebP image", field="avatar")
        if not data:
            raise ValidationError("Avatar file is empty", field="avatar")
        if len(data) > self.settings.avatar_max_bytes:
            raise ValidationError(
                f"Avatar exceeds {self.settings.avatar_max_bytes // (1024 * 1024)} MB",
                field="avatar",
            )

        now = utcnow()
        # Unique key per upload so a refused write never clobbers the live avatar
        key = f"{actor.id}/avatar-{now.strftime('%Y%m%d%H%M%S%f')}.{extension}"
        public_url = await asyncio.to_thread(blob_store.upload, key, data)

        profile = await self._write_guarded(
            actor.id, ProfileField.AVATAR, {"avatar_url": public_url}, now=now,
        )
        logger.info("Avatar changed", extra={"profile_id": str(actor.id), "blob_key": key})
        return profile

    async def edit_profile(
        self,
        admin: Actor,
        target_id: uuid.UUID,
        username: Optional[str] = None,
        email: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Profile:
        """
        Edit another member's profile.

        Admin edits do not touch cooldown stamps.

        Raises:
            PermissionDenied: If admin lacks edit_any_profile
            NotFound: If the target does not exist
            ValidationError: Empty or taken username, malformed email
        """
        await self.authorization.authorize(admin, PermissionKey.EDIT_ANY_PROFILE, target_id=target_id)
        target = await self.identity.require_profile(target_id, for_update=True)

        if username is not None:
            username = username.strip()
            if not username:
                raise ValidationError("Username is required", field="username")
            if username != target.username:
                other = await self.identity.get_profile_by_username(username)
                if other is not None:
                    raise ValidationError("Username already taken", field="username")
                target.username = username

        email_changed = False
        if email is not None:
            email = normalize_email(email)
            email_changed = email != target.email
            target.email = email

        if description is not None:
            target.description = description.strip() or None

        await self.session.flush()
        await self.audit_log.record_from_model(
            admin_id=admin.id,
            action=AuditAction.EDIT_PROFILE,
            target_user_id=target.id,
            details_model=ProfileEditedDetails(username=target.username, email_changed=email_changed),
        )
        return target

    async def _write_guarded(
        self,
        profile_id: uuid.UUID,
        field: ProfileField,
        values: dict,
        now: Optional[datetime] = None,
    ) -> Profile:
        now = now or utcnow()
        stamp = self.guard.stamp_column(field)
        statement = (
            update(Profile)
            .where(Profile.id == profile_id, self.guard.write_condition(field, now))
            .values({**values, stamp.key: now})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)

        profile = await self.identity.require_profile(profile_id)
        if result.rowcount == 0:
            # A concurrent change committed first; report its window
            decision = self.guard.can_mutate(Actor.from_profile(profile), field, now)
            raise CooldownActive(field.value, max(1, decision.days_remaining))
        return profile
