"""
Cooldown guard for self-service changes to identity-sensitive profile fields.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from furioza.config import get_settings
from furioza.kernel.errors import CooldownActive, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.models.base import as_utc, utcnow
from furioza.kernel.models.user import Profile

_ONE_DAY = timedelta(days=1)


class ProfileField(str, Enum):
    """Profile fields whose changes are rate limited."""
    EMAIL = "email"
    AVATAR = "avatar"


_STAMP_ATTRIBUTES: Dict[ProfileField, str] = {
    ProfileField.EMAIL: "last_email_change",
    ProfileField.AVATAR: "last_avatar_change",
}


def parse_field(value) -> ProfileField:
    try:
        return ProfileField(value)
    except ValueError:
        raise ValidationError(f"Field {value!r} has no cooldown", field="field") from None


@dataclass(frozen=True)
class CooldownDecision:
    allowed: bool
    days_remaining: int


class MutationCooldownGuard:
    """
    Minimum interval between accepted changes of the same field.

    ``can_mutate`` answers from a snapshot for display and early refusal.
    The authoritative check happens in the write itself: ``write_condition``
    is the WHERE clause of the UPDATE that changes the field and stamps it,
    so of two racing writers only the first can match.
    """

    def __init__(self, cooldown_days: Optional[int] = None):
        self.cooldown_days = cooldown_days if cooldown_days is not None else get_settings().profile_cooldown_days
        self.window = timedelta(days=self.cooldown_days)

    def last_change(self, actor: Actor, field: ProfileField) -> Optional[datetime]:
        return as_utc(getattr(actor, _STAMP_ATTRIBUTES[parse_field(field)]))

    def can_mutate(
        self,
        actor: Actor,
        field: ProfileField,
        now: Optional[datetime] = None,
    ) -> CooldownDecision:
        last = self.last_change(actor, field)
        if last is None:
            return CooldownDecision(allowed=True, days_remaining=0)

        now = as_utc(now) if now is not None else utcnow()
        # Whole days, truncated; a stamp in the future counts as zero elapsed
        elapsed = max(0, (now - last) // _ONE_DAY)
        if elapsed >= self.cooldown_days:
            return CooldownDecision(allowed=True, days_remaining=0)
        return CooldownDecision(allowed=False, days_remaining=self.cooldown_days - elapsed)

    def ensure_can_mutate(
        self,
        actor: Actor,
        field: ProfileField,
        now: Optional[datetime] = None,
    ) -> None:
        decision = self.can_mutate(actor, field, now)
        if not decision.allowed:
            raise CooldownActive(parse_field(field).value, decision.days_remaining)

    def stamp_column(self, field: ProfileField):
        return getattr(Profile, _STAMP_ATTRIBUTES[parse_field(field)])

    def write_condition(self, field: ProfileField, now: datetime) -> ColumnElement[bool]:
        """WHERE clause that only matches rows outside the cooldown window at ``now``."""
        column = self.stamp_column(field)
        return or_(column.is_(None), column <= now - self.window)
