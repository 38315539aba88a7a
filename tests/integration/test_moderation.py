"""
Integration tests for the moderation state machine.
"""

import uuid

import pytest
from sqlalchemy import func, select

from furioza.database import unit_of_work
from furioza.engines.community.threads import ThreadService
from furioza.kernel.errors import InvalidState, NotFound, PermissionDenied
from furioza.kernel.models import AuditAction, AuditLogEntry, Post, Thread, ThreadView
from furioza.kernel.permissions.ban import BanEnforcement
from furioza.kernel.roles import Role
from furioza.orchestration.state_machine import ModerationAction, ModerationStateMachine


async def _count(session_maker, model, *criteria) -> int:
    async with session_maker() as session:
        query = select(func.count()).select_from(model)
        if criteria:
            query = query.where(*criteria)
        return (await session.execute(query)).scalar_one()


async def _audit_count(session_maker, action: AuditAction) -> int:
    return await _count(session_maker, AuditLogEntry, AuditLogEntry.action == action.value)


async def _reply(session_maker, actor, thread_id, content="Będę!"):
    async with unit_of_work(session_maker) as session:
        return (await ModerationStateMachine(session).create_post(actor, thread_id, content)).id


@pytest.mark.asyncio
async def test_delete_thread_cascades_posts(session_maker, admin, zawodnik, trener, thread_id):
    for i in range(3):
        await _reply(session_maker, zawodnik, thread_id, f"Odpowiedź {i}")
    async with unit_of_work(session_maker) as session:
        await ModerationStateMachine(session).increment_views(thread_id, viewer=trener)

    async with unit_of_work(session_maker) as session:
        deleted = await ModerationStateMachine(session).delete_thread(admin, thread_id)
    assert deleted == 3

    assert await _count(session_maker, Thread, Thread.id == thread_id) == 0
    assert await _count(session_maker, Post, Post.thread_id == thread_id) == 0
    assert await _count(session_maker, ThreadView, ThreadView.thread_id == thread_id) == 0
    assert await _audit_count(session_maker, AuditAction.DELETE_THREAD) == 1

    async with session_maker() as session:
        entry = (await session.execute(
            select(AuditLogEntry).where(AuditLogEntry.action == AuditAction.DELETE_THREAD.value)
        )).scalar_one()
    assert entry.details["thread_id"] == str(thread_id)
    assert entry.details["deleted_posts"] == 3
    assert entry.target_user_id == zawodnik.id


@pytest.mark.asyncio
async def test_delete_thread_without_permission(session_maker, kapitan, zawodnik, thread_id):
    await _reply(session_maker, zawodnik, thread_id)

    with pytest.raises(PermissionDenied):
        async with unit_of_work(session_maker) as session:
            await ModerationStateMachine(session).delete_thread(kapitan, thread_id)

    assert await _count(session_maker, Thread, Thread.id == thread_id) == 1
    assert await _count(session_maker, Post, Post.thread_id == thread_id) == 1
    assert await _audit_count(session_maker, AuditAction.DELETE_THREAD) == 0


@pytest.mark.asyncio
async def test_delete_thread_granted_to_kapitan(session_maker, kapitan, grant, thread_id):
    await grant(Role.KAPITAN, "delete_threads")
    async with unit_of_work(session_maker) as session:
        assert await ModerationStateMachine(session).delete_thread(kapitan, thread_id) == 0
    assert await _count(session_maker, Thread) == 0


@pytest.mark.asyncio
async def test_delete_missing_thread(session_maker, admin):
    async with session_maker() as session:
        with pytest.raises(NotFound):
            await ModerationStateMachine(session).delete_thread(admin, uuid.uuid4())


@pytest.mark.asyncio
async def test_locked_thread_refuses_every_reply(session_maker, admin, zawodnik, thread_id):
    async with unit_of_work(session_maker) as session:
        thread = await ModerationStateMachine(session).lock(admin, thread_id)
        assert thread.is_locked is True

    for actor in (zawodnik, admin):
        with pytest.raises(InvalidState):
            await _reply(session_maker, actor, thread_id)

    assert await _count(session_maker, Post, Post.thread_id == thread_id) == 0


@pytest.mark.asyncio
async def test_lock_unlock_transitions(session_maker, admin, thread_id):
    async with unit_of_work(session_maker) as session:
        await ModerationStateMachine(session).lock(admin, thread_id)

    async with session_maker() as session:
        with pytest.raises(InvalidState):
            await ModerationStateMachine(session).lock(admin, thread_id)

    async with unit_of_work(session_maker) as session:
        thread = await ModerationStateMachine(session).transition(admin, thread_id, ModerationAction.UNLOCK)
        assert thread.is_locked is False

    assert await _audit_count(session_maker, AuditAction.LOCK_THREAD) == 1
    assert await _audit_count(session_maker, AuditAction.UNLOCK_THREAD) == 1


@pytest.mark.asyncio
async def test_moderation_requires_permission(session_maker, trener, thread_id):
    async with session_maker() as session:
        with pytest.raises(PermissionDenied):
            await ModerationStateMachine(session).pin(trener, thread_id)
    assert await _audit_count(session_maker, AuditAction.PIN_THREAD) == 0


@pytest.mark.asyncio
async def test_pinned_threads_list_first(session_maker, admin, zawodnik, category_id, thread_id):
    async with unit_of_work(session_maker) as session:
        newer = await ThreadService(session).create_thread(zawodnik, category_id, "Nowszy", "Treść")
        newer_id = newer.id

    async with unit_of_work(session_maker) as session:
        await ModerationStateMachine(session).pin(admin, thread_id)

    async with session_maker() as session:
        listing = await ThreadService(session).list_threads(category_id)
    assert [item.thread.id for item in listing] == [thread_id, newer_id]

    async with unit_of_work(session_maker) as session:
        thread = await ModerationStateMachine(session).unpin(admin, thread_id)
        assert thread.is_pinned is False


@pytest.mark.asyncio
async def test_banned_actor_cannot_post(session_maker, admin, zawodnik, thread_id):
    async with unit_of_work(session_maker) as session:
        await BanEnforcement(session).toggle_ban(admin, zawodnik.id)

    with pytest.raises(PermissionDenied) as exc_info:
        await _reply(session_maker, zawodnik, thread_id)
    assert exc_info.value.reason == "banned"
    assert await _count(session_maker, Post) == 0


@pytest.mark.asyncio
async def test_post_to_missing_thread(session_maker, zawodnik):
    with pytest.raises(NotFound):
        await _reply(session_maker, zawodnik, uuid.uuid4())


@pytest.mark.asyncio
async def test_reply_bumps_thread_activity(session_maker, zawodnik, thread_id):
    async with session_maker() as session:
        before = (await ThreadService(session).get_thread(thread_id)).updated_at

    await _reply(session_maker, zawodnik, thread_id)

    async with session_maker() as session:
        after = (await ThreadService(session).get_thread(thread_id)).updated_at
        posts = await ThreadService(session).list_posts(thread_id)
    assert after > before
    assert [p.content for p in posts] == ["Będę!"]


@pytest.mark.asyncio
async def test_views_are_counted_once_per_viewer(session_maker, zawodnik, trener, thread_id):
    counts = []
    for viewer in (zawodnik, zawodnik, trener, None, None):
        async with unit_of_work(session_maker) as session:
            counts.append(await ModerationStateMachine(session).increment_views(thread_id, viewer=viewer))
    assert counts == [1, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_views_always_policy(session_maker, zawodnik, thread_id):
    for _ in range(3):
        async with unit_of_work(session_maker) as session:
            count = await ModerationStateMachine(session, view_policy="always").increment_views(
                thread_id, viewer=zawodnik,
            )
    assert count == 3
    assert await _count(session_maker, ThreadView) == 0


@pytest.mark.asyncio
async def test_views_do_not_reorder_listing(session_maker, zawodnik, thread_id):
    async with session_maker() as session:
        before = (await ThreadService(session).get_thread(thread_id)).updated_at
    async with unit_of_work(session_maker) as session:
        await ModerationStateMachine(session).increment_views(thread_id)
    async with session_maker() as session:
        thread = await ThreadService(session).get_thread(thread_id)
    assert thread.view_count == 1
    assert thread.updated_at == before


@pytest.mark.asyncio
async def test_author_deletes_own_post(session_maker, zawodnik, thread_id):
    post_id = await _reply(session_maker, zawodnik, thread_id)

    async with unit_of_work(session_maker) as session:
        await ModerationStateMachine(session).delete_post(zawodnik, post_id)

    assert await _count(session_maker, Post) == 0
    async with session_maker() as session:
        entry = (await session.execute(
            select(AuditLogEntry).where(AuditLogEntry.action == AuditAction.DELETE_POST.value)
        )).scalar_one()
    assert entry.details["by_author"] is True
    assert entry.admin_id == zawodnik.id


@pytest.mark.asyncio
async def test_other_member_cannot_delete_post(session_maker, zawodnik, trener, thread_id):
    post_id = await _reply(session_maker, zawodnik, thread_id)

    with pytest.raises(PermissionDenied):
        async with unit_of_work(session_maker) as session:
            await ModerationStateMachine(session).delete_post(trener, post_id)
    assert await _count(session_maker, Post) == 1


@pytest.mark.asyncio
async def test_moderator_deletes_post(session_maker, kapitan, zawodnik, grant, thread_id):
    await grant(Role.KAPITAN, "moderate_threads")
    post_id = await _reply(session_maker, zawodnik, thread_id)

    async with unit_of_work(session_maker) as session:
        await ModerationStateMachine(session).delete_post(kapitan, post_id)

    assert await _count(session_maker, Post) == 0
    assert await _audit_count(session_maker, AuditAction.DELETE_POST) == 1
