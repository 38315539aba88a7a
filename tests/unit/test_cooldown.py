"""Unit tests for the profile mutation cooldown guard."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from furioza.kernel.errors import CooldownActive, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.profile.cooldown import CooldownDecision, MutationCooldownGuard, ProfileField

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _actor(email_change=None, avatar_change=None) -> Actor:
    return Actor(
        id=uuid.uuid4(),
        last_email_change=email_change,
        last_avatar_change=avatar_change,
    )


@pytest.fixture
def guard() -> MutationCooldownGuard:
    return MutationCooldownGuard(cooldown_days=31)


class TestCanMutate:
    """Tests for can_mutate decisions."""

    def test_never_changed_is_allowed(self, guard):
        assert guard.can_mutate(_actor(), ProfileField.EMAIL, NOW) == CooldownDecision(True, 0)

    def test_thirty_days_ago_leaves_one_day(self, guard):
        actor = _actor(email_change=NOW - timedelta(days=30))
        assert guard.can_mutate(actor, ProfileField.EMAIL, NOW) == CooldownDecision(False, 1)

    def test_thirty_one_days_ago_is_allowed(self, guard):
        actor = _actor(email_change=NOW - timedelta(days=31))
        assert guard.can_mutate(actor, ProfileField.EMAIL, NOW) == CooldownDecision(True, 0)

    def test_partial_days_are_truncated(self, guard):
        actor = _actor(avatar_change=NOW - timedelta(days=30, hours=23))
        assert guard.can_mutate(actor, ProfileField.AVATAR, NOW) == CooldownDecision(False, 1)

    def test_same_day_change(self, guard):
        actor = _actor(avatar_change=NOW - timedelta(minutes=5))
        assert guard.can_mutate(actor, ProfileField.AVATAR, NOW) == CooldownDecision(False, 31)

    def test_fields_are_independent(self, guard):
        actor = _actor(email_change=NOW)
        assert guard.can_mutate(actor, ProfileField.EMAIL, NOW).allowed is False
        assert guard.can_mutate(actor, ProfileField.AVATAR, NOW).allowed is True

    def test_naive_stamp_is_treated_as_utc(self, guard):
        naive = (NOW - timedelta(days=10)).replace(tzinfo=None)
        actor = _actor(email_change=naive)
        assert guard.can_mutate(actor, ProfileField.EMAIL, NOW) == CooldownDecision(False, 21)

    def test_future_stamp_counts_as_zero_elapsed(self, guard):
        actor = _actor(email_change=NOW + timedelta(days=2))
        assert guard.can_mutate(actor, ProfileField.EMAIL, NOW) == CooldownDecision(False, 31)

    def test_field_accepts_string(self, guard):
        assert guard.can_mutate(_actor(), "avatar", NOW).allowed is True

    def test_unknown_field_raises(self, guard):
        with pytest.raises(ValidationError):
            guard.can_mutate(_actor(), "username", NOW)

    def test_custom_window(self):
        guard = MutationCooldownGuard(cooldown_days=7)
        actor = _actor(email_change=NOW - timedelta(days=5))
        assert guard.can_mutate(actor, ProfileField.EMAIL, NOW) == CooldownDecision(False, 2)


class TestEnsureCanMutate:
    def test_raises_with_days_remaining(self, guard):
        actor = _actor(email_change=NOW - timedelta(days=20))
        with pytest.raises(CooldownActive) as exc_info:
            guard.ensure_can_mutate(actor, ProfileField.EMAIL, NOW)
        assert exc_info.value.days_remaining == 11
        assert exc_info.value.field == "email"

    def test_passes_when_allowed(self, guard):
        guard.ensure_can_mutate(_actor(), ProfileField.EMAIL, NOW)
