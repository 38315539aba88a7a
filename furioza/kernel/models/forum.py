"""
Forum content models: categories, threads, posts and per-viewer view records.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from furioza.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow


class Category(Base):
    """Top-level forum section."""

    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    icon: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Category {self.name}>"


class Thread(Base, TimestampMixin):
    """
    Discussion thread.

    Moderation state is two independent flags, so a thread is in one of
    four states: open/locked x pinned/unpinned.
    """

    __tablename__ = "threads"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("categories.id"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(
        String(300),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    is_pinned: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_locked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    # Only ever written as view_count + 1
    view_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    posts: Mapped[List["Post"]] = relationship(
        "Post",
        back_populates="thread",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_threads_category_listing", "category_id", "is_pinned", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<Thread {self.title!r} locked={self.is_locked} pinned={self.is_pinned}>"


class Post(Base):
    """Reply inside a thread."""

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    thread_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    is_flame_style: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    thread: Mapped["Thread"] = relationship(
        "Thread",
        back_populates="posts",
    )

    def __repr__(self) -> str:
        return f"<Post {self.id} thread={self.thread_id}>"


class ThreadView(Base):
    """One row per (thread, viewer) pair for deduplicated view counting."""

    __tablename__ = "thread_views"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    thread_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
    )
    viewer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
    )
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("thread_id", "viewer_id", name="uq_thread_views_thread_viewer"),
    )
