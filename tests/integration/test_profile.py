"""
Integration tests for cooldown-gated profile changes and admin edits.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, update

from furioza.database import unit_of_work
from furioza.kernel.errors import CooldownActive, PermissionDenied, ValidationError
from furioza.kernel.models import AuditAction, AuditLogEntry, Profile, utcnow
from furioza.kernel.permissions.ban import BanEnforcement
from furioza.kernel.profile.cooldown import MutationCooldownGuard, ProfileField
from furioza.kernel.profile.profile_service import ProfileService
from furioza.kernel.storage.blob_store import LocalBlobStore


class _StaleGuard(MutationCooldownGuard):
    """Pre-check that always passes, as if the caller's snapshot were stale."""

    def ensure_can_mutate(self, actor, field, now=None):
        return None


async def _profile(session_maker, profile_id) -> Profile:
    async with session_maker() as session:
        return (await session.execute(select(Profile).where(Profile.id == profile_id))).scalar_one()


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(root=str(tmp_path), public_base_url="https://cdn.furioza.pl")


@pytest.mark.asyncio
async def test_second_email_change_hits_cooldown(session_maker, zawodnik):
    async with unit_of_work(session_maker) as session:
        profile = await ProfileService(session).update_email(zawodnik, "Nowy@Furioza.pl")
        assert profile.email == "nowy@furioza.pl"
        assert profile.last_email_change is not None

    with pytest.raises(CooldownActive) as exc_info:
        async with unit_of_work(session_maker) as session:
            await ProfileService(session).update_email(zawodnik, "inny@furioza.pl")
    assert exc_info.value.days_remaining == 31
    assert exc_info.value.field == "email"

    assert (await _profile(session_maker, zawodnik.id)).email == "nowy@furioza.pl"


@pytest.mark.asyncio
async def test_write_time_check_catches_stale_snapshot(session_maker, zawodnik):
    async with unit_of_work(session_maker) as session:
        await ProfileService(session, guard=_StaleGuard()).update_email(zawodnik, "pierwszy@furioza.pl")

    with pytest.raises(CooldownActive) as exc_info:
        async with unit_of_work(session_maker) as session:
            await ProfileService(session, guard=_StaleGuard()).update_email(zawodnik, "drugi@furioza.pl")
    assert exc_info.value.days_remaining >= 1

    assert (await _profile(session_maker, zawodnik.id)).email == "pierwszy@furioza.pl"


@pytest.mark.asyncio
async def test_change_allowed_after_window(session_maker, zawodnik):
    async with unit_of_work(session_maker) as session:
        await session.execute(
            update(Profile)
            .where(Profile.id == zawodnik.id)
            .values(last_email_change=utcnow() - timedelta(days=31, minutes=1))
        )

    async with unit_of_work(session_maker) as session:
        profile = await ProfileService(session).update_email(zawodnik, "po-terminie@furioza.pl")
        assert profile.email == "po-terminie@furioza.pl"


@pytest.mark.asyncio
async def test_cooldown_status(session_maker, zawodnik):
    async with unit_of_work(session_maker) as session:
        await ProfileService(session).update_email(zawodnik, "status@furioza.pl")

    async with session_maker() as session:
        status = await ProfileService(session).cooldown_status(zawodnik)
    assert status[ProfileField.EMAIL].allowed is False
    assert status[ProfileField.EMAIL].days_remaining == 31
    assert status[ProfileField.AVATAR].allowed is True


@pytest.mark.asyncio
async def test_invalid_email_rejected(session_maker, zawodnik):
    async with session_maker() as session:
        with pytest.raises(ValidationError):
            await ProfileService(session).update_email(zawodnik, "bez-malpy")


@pytest.mark.asyncio
async def test_banned_member_cannot_change_email(session_maker, admin, zawodnik):
    async with unit_of_work(session_maker) as session:
        await BanEnforcement(session).toggle_ban(admin, zawodnik.id)

    async with session_maker() as session:
        with pytest.raises(PermissionDenied):
            await ProfileService(session).update_email(zawodnik, "ban@furioza.pl")


@pytest.mark.asyncio
async def test_avatar_upload_and_cooldown(session_maker, zawodnik, blob_store, tmp_path):
    async with unit_of_work(session_maker) as session:
        profile = await ProfileService(session).update_avatar(zawodnik, "me.PNG", b"\x89PNG-data", blob_store)

    assert profile.avatar_url.startswith(f"https://cdn.furioza.pl/{zawodnik.id}/avatar-")
    assert profile.avatar_url.endswith(".png")
    stored = list((tmp_path / str(zawodnik.id)).iterdir())
    assert len(stored) == 1

    with pytest.raises(CooldownActive):
        async with unit_of_work(session_maker) as session:
            await ProfileService(session).update_avatar(zawodnik, "me2.png", b"\x89PNG-2", blob_store)

    # Refused before anything was uploaded
    assert len(list((tmp_path / str(zawodnik.id)).iterdir())) == 1
    assert (await _profile(session_maker, zawodnik.id)).avatar_url == profile.avatar_url


@pytest.mark.asyncio
@pytest.mark.parametrize("filename,data", [
    ("avatar.exe", b"MZ"),
    ("avatar", b"data"),
    ("avatar.png", b""),
])
async def test_avatar_validation(session_maker, zawodnik, blob_store, filename, data):
    async with session_maker() as session:
        with pytest.raises(ValidationError):
            await ProfileService(session).update_avatar(zawodnik, filename, data, blob_store)


@pytest.mark.asyncio
async def test_avatar_size_limit(session_maker, zawodnik, blob_store):
    data = b"x" * (2 * 1024 * 1024 + 1)
    async with session_maker() as session:
        with pytest.raises(ValidationError):
            await ProfileService(session).update_avatar(zawodnik, "big.jpg", data, blob_store)


@pytest.mark.asyncio
async def test_update_description(session_maker, zawodnik):
    async with unit_of_work(session_maker) as session:
        profile = await ProfileService(session).update_description(zawodnik, "  Lewy obrońca  ")
        assert profile.description == "Lewy obrońca"

    async with session_maker() as session:
        with pytest.raises(ValidationError):
            await ProfileService(session).update_description(zawodnik, "x" * 2001)


@pytest.mark.asyncio
async def test_admin_edit_profile(session_maker, admin, zawodnik):
    async with unit_of_work(session_maker) as session:
        profile = await ProfileService(session).edit_profile(
            admin, zawodnik.id, username="napastnik", email="Napastnik@Furioza.pl",
        )
        assert profile.username == "napastnik"

    edited = await _profile(session_maker, zawodnik.id)
    assert edited.email == "napastnik@furioza.pl"
    # Admin edits do not start the member's cooldown
    assert edited.last_email_change is None

    async with session_maker() as session:
        entry = (await session.execute(
            select(AuditLogEntry).where(AuditLogEntry.action == AuditAction.EDIT_PROFILE.value)
        )).scalar_one()
    assert entry.target_user_id == zawodnik.id
    assert entry.details == {"username": "napastnik", "email_changed": True}


@pytest.mark.asyncio
async def test_admin_edit_requires_permission(session_maker, kapitan, zawodnik):
    async with session_maker() as session:
        with pytest.raises(PermissionDenied):
            await ProfileService(session).edit_profile(kapitan, zawodnik.id, username="x")


@pytest.mark.asyncio
async def test_admin_edit_rejects_taken_username(session_maker, admin, kapitan, zawodnik):
    async with session_maker() as session:
        with pytest.raises(ValidationError) as exc_info:
            await ProfileService(session).edit_profile(admin, zawodnik.id, username="kapitan")
    assert exc_info.value.field == "username"
