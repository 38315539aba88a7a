"""
Identity service: resolves authenticated subjects to Actors.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.kernel.errors import NotFound, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.models.user import Profile
from furioza.kernel.roles import DEFAULT_ROLE, Role, display_order, parse_role
from furioza.logging_config import get_logger

logger = get_logger(__name__)


class IdentityService:
    """
    Lookups against the profile store.

    The identity provider authenticates the request; this service only maps
    the authenticated subject onto the authoritative profile record.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_profile(self, profile_id: uuid.UUID, *, for_update: bool = False) -> Optional[Profile]:
        query = select(Profile).where(Profile.id == profile_id)
        if for_update:
            query = query.with_for_update()
        # Always hand back the row as stored, not a stale identity-map copy
        query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def require_profile(self, profile_id: uuid.UUID, *, for_update: bool = False) -> Profile:
        profile = await self.get_profile(profile_id, for_update=for_update)
        if profile is None:
            raise NotFound("Profile", profile_id)
        return profile

    async def resolve_actor(self, profile_id: uuid.UUID) -> Actor:
        """Build a fresh Actor snapshot from the store."""
        profile = await self.require_profile(profile_id)
        return Actor.from_profile(profile)

    async def get_profile_by_username(self, username: str) -> Optional[Profile]:
        result = await self.session.execute(
            select(Profile).where(Profile.username == username)
        )
        return result.scalar_one_or_none()

    async def create_profile(
        self,
        username: str,
        email: str,
        role: Role = DEFAULT_ROLE,
        profile_id: Optional[uuid.UUID] = None,
    ) -> Profile:
        """
        Provision the profile for a newly registered identity.

        Raises:
            ValidationError: If the username is empty or already taken
        """
        username = username.strip()
        if not username:
            raise ValidationError("Username is required", field="username")
        if await self.get_profile_by_username(username):
            raise ValidationError("Username already taken", field="username")

        profile = Profile(
            username=username,
            email=email.lower().strip(),
            role=parse_role(role),
        )
        if profile_id is not None:
            profile.id = profile_id

        self.session.add(profile)
        await self.session.flush()
        logger.info("Profile created", extra={"profile_id": str(profile.id)})
        return profile

    async def list_profiles(self) -> List[Profile]:
        """All profiles, grouped by role in display order, then by username."""
        result = await self.session.execute(select(Profile).order_by(Profile.username))
        rank = {role: index for index, role in enumerate(display_order())}
        return sorted(result.scalars().all(), key=lambda p: rank[parse_role(p.role)])
