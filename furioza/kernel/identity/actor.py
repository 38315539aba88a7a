"""
Actor: the identity performing an operation.

An Actor is an immutable snapshot of a profile's authorization-relevant
fields. It is passed explicitly into every operation; services that make a
decision re-read the profile instead of trusting the snapshot's flags.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from furioza.kernel.models.base import as_utc
from furioza.kernel.models.user import Profile
from furioza.kernel.roles import DEFAULT_ROLE, Role, parse_role


@dataclass(frozen=True)
class Actor:
    id: uuid.UUID
    role: Role = DEFAULT_ROLE
    is_banned: bool = False
    last_email_change: Optional[datetime] = None
    last_avatar_change: Optional[datetime] = None

    @classmethod
    def from_profile(cls, profile: Profile) -> "Actor":
        return cls(
            id=profile.id,
            role=parse_role(profile.role),
            is_banned=bool(profile.is_banned),
            last_email_change=as_utc(profile.last_email_change),
            last_avatar_change=as_utc(profile.last_avatar_change),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
