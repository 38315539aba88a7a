"""
Forum schemas: categories, threads and posts.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=64)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    sort_order: int
    created_at: datetime


class ThreadCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)


class ThreadResponse(BaseModel):
    """Thread with its moderation flags."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    category_id: uuid.UUID
    author_id: Optional[uuid.UUID] = None
    title: str
    content: str
    is_pinned: bool
    is_locked: bool
    view_count: int
    created_at: datetime
    updated_at: datetime


class ThreadListItem(ThreadResponse):
    post_count: int = 0


class PostCreate(BaseModel):
    """Reply request. Either text or at least one image URL is required."""

    content: str = ""
    image_urls: List[str] = Field(default_factory=list)
    flame_style: bool = False


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    thread_id: uuid.UUID
    author_id: Optional[uuid.UUID] = None
    content: str
    is_flame_style: bool
    created_at: datetime


class ThreadDeleteResponse(BaseModel):
    thread_id: uuid.UUID
    deleted_posts: int


class ViewCountResponse(BaseModel):
    thread_id: uuid.UUID
    view_count: int
