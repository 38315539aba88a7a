"""
Moderation state machine for thread and post lifecycle.

A thread's moderation state is two independent flags, open/locked and
pinned/unpinned. Valid transitions and the permission they need are defined
here; every transition is recorded in the audit log in the same transaction.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.config import get_settings
from furioza.kernel.audit.audit_log import AuditLog
from furioza.kernel.audit.details import PostDeletedDetails, ThreadDeletedDetails, ThreadModeratedDetails
from furioza.kernel.errors import InvalidState, NotFound, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.models.audit_log import AuditAction
from furioza.kernel.models.base import utcnow
from furioza.kernel.models.forum import Post, Thread, ThreadView
from furioza.kernel.models.permission import PermissionKey
from furioza.kernel.permissions.ban import BanEnforcement
from furioza.kernel.permissions.permission_service import AuthorizationService
from furioza.logging_config import get_logger

logger = get_logger(__name__)


class ModerationAction(str, Enum):
    LOCK = "lock"
    UNLOCK = "unlock"
    PIN = "pin"
    UNPIN = "unpin"


# action -> (flag, value after the transition, audit tag)
_TRANSITIONS: Dict[ModerationAction, Tuple[str, bool, AuditAction]] = {
    ModerationAction.LOCK: ("is_locked", True, AuditAction.LOCK_THREAD),
    ModerationAction.UNLOCK: ("is_locked", False, AuditAction.UNLOCK_THREAD),
    ModerationAction.PIN: ("is_pinned", True, AuditAction.PIN_THREAD),
    ModerationAction.UNPIN: ("is_pinned", False, AuditAction.UNPIN_THREAD),
}


@dataclass(frozen=True)
class ThreadState:
    locked: bool
    pinned: bool

    @classmethod
    def of(cls, thread: Thread) -> "ThreadState":
        return cls(locked=bool(thread.is_locked), pinned=bool(thread.is_pinned))

    @property
    def label(self) -> str:
        return f"{'locked' if self.locked else 'open'}/{'pinned' if self.pinned else 'unpinned'}"


def valid_actions(state: ThreadState) -> List[ModerationAction]:
    """Actions that change the given state."""
    current = {"is_locked": state.locked, "is_pinned": state.pinned}
    return [
        action for action, (flag, target, _) in _TRANSITIONS.items()
        if current[flag] != target
    ]


def compose_post_content(text: str, image_urls: Sequence[str] = (), max_images: int = 5) -> str:
    """
    Join post text and image references into stored post content.

    Images are kept as ``[IMG]url[/IMG]`` markers after the text.
    """
    text = (text or "").strip()
    urls = [url.strip() for url in image_urls if url and url.strip()]

    if len(urls) > max_images:
        raise ValidationError(f"A post can reference at most {max_images} images", field="image_urls")
    for url in urls:
        if not url.startswith(("http://", "https://")):
            raise ValidationError(f"Invalid image URL: {url!r}", field="image_urls")
    if not text and not urls:
        raise ValidationError("Post content cannot be empty", field="content")

    if not urls:
        return text
    markers = "\n".join(f"[IMG]{url}[/IMG]" for url in urls)
    return f"{text}\n\n{markers}" if text else markers


class ModerationStateMachine:
    """Service for thread/post transitions with authorization and audit logging."""

    def __init__(
        self,
        session: AsyncSession,
        authorization: Optional[AuthorizationService] = None,
        view_policy: Optional[str] = None,
    ):
        self.session = session
        self.settings = get_settings()
        self.authorization = authorization or AuthorizationService(session)
        self.bans = BanEnforcement(session, self.authorization)
        self.audit_log = AuditLog(session)
        self.view_policy = view_policy or self.settings.view_count_policy

    async def transition(
        self,
        actor: Actor,
        thread_id: uuid.UUID,
        action: ModerationAction,
    ) -> Thread:
        """
        Apply a lock/unlock/pin/unpin transition.

        Raises:
            PermissionDenied: If the actor lacks moderate_threads or is banned
            NotFound: If the thread does not exist
            InvalidState: If the thread is already in the target state
        """
        action = ModerationAction(action)
        flag, target, audit_action = _TRANSITIONS[action]

        await self.authorization.authorize(actor, PermissionKey.MODERATE_THREADS)
        thread = await self._require_thread(thread_id, for_update=True)

        before = ThreadState.of(thread)
        if getattr(thread, flag) == target:
            raise InvalidState(f"Cannot {action.value} a thread that is {before.label}")

        setattr(thread, flag, target)
        await self.session.flush()

        await self.audit_log.record_from_model(
            admin_id=actor.id,
            action=audit_action,
            target_user_id=thread.author_id,
            details_model=ThreadModeratedDetails(thread_id=thread.id, title=thread.title),
        )
        logger.info(
            "Thread moderated",
            extra={
                "thread_id": str(thread.id),
                "from_state": before.label,
                "to_state": ThreadState.of(thread).label,
            },
        )
        return thread

    async def lock(self, actor: Actor, thread_id: uuid.UUID) -> Thread:
        return await self.transition(actor, thread_id, ModerationAction.LOCK)

    async def unlock(self, actor: Actor, thread_id: uuid.UUID) -> Thread:
        return await self.transition(actor, thread_id, ModerationAction.UNLOCK)

    async def pin(self, actor: Actor, thread_id: uuid.UUID) -> Thread:
        return await self.transition(actor, thread_id, ModerationAction.PIN)

    async def unpin(self, actor: Actor, thread_id: uuid.UUID) -> Thread:
        return await self.transition(actor, thread_id, ModerationAction.UNPIN)

    async def create_post(
        self,
        actor: Actor,
        thread_id: uuid.UUID,
        content: str,
        image_urls: Sequence[str] = (),
        flame_style: bool = False,
    ) -> Post:
        """
        Reply to a thread.

        Locked threads refuse every actor, moderators included.

        Raises:
            ValidationError: Empty content or bad image references
            NotFound: If the thread does not exist
            PermissionDenied: If the actor is banned
            InvalidState: If the thread is locked
        """
        body = compose_post_content(content, image_urls, self.settings.post_max_images)
        thread = await self._require_thread(thread_id, for_update=True)
        fresh = await self.bans.ensure_not_banned(actor)

        if thread.is_locked:
            raise InvalidState("Thread is locked")

        post = Post(
            thread_id=thread.id,
            author_id=fresh.id,
            content=body,
            is_flame_style=flame_style,
        )
        self.session.add(post)
        thread.updated_at = utcnow()
        await self.session.flush()
        return post

    async def increment_views(self, thread_id: uuid.UUID, viewer: Optional[Actor] = None) -> int:
        """
        Count a view of the thread and return the new total.

        Under the ``per_viewer`` policy an authenticated viewer is counted
        once per thread; anonymous views always count. Under ``always``
        every call counts.

        Raises:
            NotFound: If the thread does not exist
        """
        thread = await self._require_thread(thread_id)

        if self.view_policy == "per_viewer" and viewer is not None:
            if not await self._record_first_view(thread.id, viewer.id):
                return thread.view_count

        result = await self.session.execute(
            update(Thread)
            .where(Thread.id == thread.id)
            .values(view_count=Thread.view_count + 1, updated_at=Thread.updated_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound("Thread", thread_id)

        refreshed = await self._require_thread(thread_id)
        return refreshed.view_count

    async def delete_thread(self, actor: Actor, thread_id: uuid.UUID) -> int:
        """
        Delete a thread together with all of its posts.

        Posts, view records and the thread go in one transaction, followed by
        exactly one DELETE_THREAD audit entry.

        Returns:
            Number of posts removed

        Raises:
            PermissionDenied: If the actor lacks delete_threads or is banned
            NotFound: If the thread does not exist
            InvalidState: If the thread disappeared mid-operation
        """
        await self.authorization.authorize(actor, PermissionKey.DELETE_THREADS)
        thread = await self._require_thread(thread_id, for_update=True)
        title, category_id, author_id = thread.title, thread.category_id, thread.author_id

        posts_result = await self.session.execute(
            delete(Post).where(Post.thread_id == thread_id)
        )
        await self.session.execute(
            delete(ThreadView).where(ThreadView.thread_id == thread_id)
        )
        thread_result = await self.session.execute(
            delete(Thread).where(Thread.id == thread_id)
        )
        if thread_result.rowcount == 0:
            raise InvalidState("Thread was already deleted")

        deleted_posts = posts_result.rowcount
        await self.audit_log.record_from_model(
            admin_id=actor.id,
            action=AuditAction.DELETE_THREAD,
            target_user_id=author_id,
            details_model=ThreadDeletedDetails(
                thread_id=thread_id,
                title=title,
                category_id=category_id,
                deleted_posts=deleted_posts,
            ),
        )
        logger.info(
            "Thread deleted",
            extra={"thread_id": str(thread_id), "deleted_posts": deleted_posts},
        )
        return deleted_posts

    async def delete_post(self, actor: Actor, post_id: uuid.UUID) -> None:
        """
        Delete a post. Authors may delete their own posts; anyone else needs
        moderate_threads.

        Raises:
            PermissionDenied: If the actor is banned, or neither author nor moderator
            NotFound: If the post does not exist
            InvalidState: If the post disappeared mid-operation
        """
        fresh = await self.bans.ensure_not_banned(actor)
        post = await self._require_post(post_id, for_update=True)

        by_author = post.author_id is not None and post.author_id == fresh.id
        if not by_author:
            await self.authorization.authorize(actor, PermissionKey.MODERATE_THREADS)

        thread_id, author_id = post.thread_id, post.author_id
        result = await self.session.execute(delete(Post).where(Post.id == post_id))
        if result.rowcount == 0:
            raise InvalidState("Post was already deleted")

        await self.audit_log.record_from_model(
            admin_id=actor.id,
            action=AuditAction.DELETE_POST,
            target_user_id=author_id,
            details_model=PostDeletedDetails(
                post_id=post_id,
                thread_id=thread_id,
                author_id=author_id,
                by_author=by_author,
            ),
        )

    async def _record_first_view(self, thread_id: uuid.UUID, viewer_id: uuid.UUID) -> bool:
        """Insert the (thread, viewer) pair; False if it already existed."""
        dialect = self.session.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        statement = (
            insert(ThreadView)
            .values(id=uuid.uuid4(), thread_id=thread_id, viewer_id=viewer_id, viewed_at=utcnow())
            .on_conflict_do_nothing(index_elements=["thread_id", "viewer_id"])
        )
        result = await self.session.execute(statement)
        return result.rowcount == 1

    async def _require_thread(self, thread_id: uuid.UUID, *, for_update: bool = False) -> Thread:
        query = select(Thread).where(Thread.id == thread_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query.execution_options(populate_existing=True))
        thread = result.scalar_one_or_none()
        if thread is None:
            raise NotFound("Thread", thread_id)
        return thread

    async def _require_post(self, post_id: uuid.UUID, *, for_update: bool = False) -> Post:
        query = select(Post).where(Post.id == post_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFound("Post", post_id)
        return post
