"""
Thread creation and read-side listings.

Moderation transitions, replies and deletion live in the orchestration
state machine; this module only opens threads and reads them back.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.kernel.audit.audit_log import AuditLog
from furioza.kernel.audit.details import ThreadCreatedDetails
from furioza.kernel.errors import NotFound, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.models.audit_log import AuditAction
from furioza.kernel.models.forum import Category, Post, Thread
from furioza.kernel.models.permission import PermissionKey
from furioza.kernel.permissions.ban import BanEnforcement
from furioza.kernel.permissions.permission_service import AuthorizationService
from furioza.logging_config import get_logger

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 300


@dataclass
class ThreadListing:
    """A thread row with its reply count."""
    thread: Thread
    post_count: int


class ThreadService:
    """Service for opening and reading threads."""

    def __init__(self, session: AsyncSession, authorization: Optional[AuthorizationService] = None):
        self.session = session
        self.authorization = authorization or AuthorizationService(session)
        self.bans = BanEnforcement(session, self.authorization)
        self.audit_log = AuditLog(session)

    async def create_thread(
        self,
        actor: Actor,
        category_id: uuid.UUID,
        title: str,
        content: str,
    ) -> Thread:
        """
        Open a new thread in a category.

        Threads opened by moderators are recorded in the audit log.

        Raises:
            ValidationError: Missing title or content
            PermissionDenied: If the actor is banned
            NotFound: If the category does not exist
        """
        title = (title or "").strip()
        content = (content or "").strip()
        if not title:
            raise ValidationError("Thread title is required", field="title")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title is limited to {MAX_TITLE_LENGTH} characters", field="title")
        if not content:
            raise ValidationError("Thread content is required", field="content")

        fresh = await self.bans.ensure_not_banned(actor)
        category = await self.session.get(Category, category_id)
        if category is None:
            raise NotFound("Category", category_id)

        thread = Thread(
            category_id=category.id,
            author_id=fresh.id,
            title=title,
            content=content,
        )
        self.session.add(thread)
        await self.session.flush()

        if await self.authorization.can(fresh, PermissionKey.MODERATE_THREADS):
            await self.audit_log.record_from_model(
                admin_id=fresh.id,
                action=AuditAction.CREATE_THREAD,
                details_model=ThreadCreatedDetails(
                    thread_id=thread.id,
                    title=thread.title,
                    category_id=category.id,
                ),
            )
        logger.info(
            "Thread created",
            extra={"thread_id": str(thread.id), "category_id": str(category.id)},
        )
        return thread

    async def get_thread(self, thread_id: uuid.UUID) -> Thread:
        thread = await self.session.get(Thread, thread_id, populate_existing=True)
        if thread is None:
            raise NotFound("Thread", thread_id)
        return thread

    async def list_threads(self, category_id: uuid.UUID) -> List[ThreadListing]:
        """Threads of a category, pinned first, then most recently active."""
        post_count = (
            select(func.count(Post.id))
            .where(Post.thread_id == Thread.id)
            .correlate(Thread)
            .scalar_subquery()
        )
        result = await self.session.execute(
            select(Thread, post_count)
            .where(Thread.category_id == category_id)
            .order_by(Thread.is_pinned.desc(), Thread.updated_at.desc())
        )
        return [ThreadListing(thread=thread, post_count=count) for thread, count in result.all()]

    async def list_posts(self, thread_id: uuid.UUID) -> List[Post]:
        """Replies of a thread, oldest first."""
        await self.get_thread(thread_id)
        result = await self.session.execute(
            select(Post)
            .where(Post.thread_id == thread_id)
            .order_by(Post.created_at, Post.id)
        )
        return list(result.scalars().all())
