"""
Detail payload schemas for audit entries, using Pydantic for validation.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuditDetails(BaseModel):
    """Base details payload."""

    model_config = ConfigDict(extra="allow")


class RoleChangedDetails(AuditDetails):
    newRole: str
    previousRole: Optional[str] = None


class PermissionChangedDetails(AuditDetails):
    role: str
    permission: str


class ProfileEditedDetails(AuditDetails):
    username: str
    email_changed: bool = False


class ThreadModeratedDetails(AuditDetails):
    thread_id: uuid.UUID
    title: Optional[str] = None


class ThreadDeletedDetails(ThreadModeratedDetails):
    category_id: uuid.UUID
    deleted_posts: int


class PostDeletedDetails(AuditDetails):
    post_id: uuid.UUID
    thread_id: uuid.UUID
    author_id: Optional[uuid.UUID] = None
    by_author: bool


class ThreadCreatedDetails(ThreadModeratedDetails):
    category_id: uuid.UUID


class CategoryDetails(AuditDetails):
    category_id: uuid.UUID
    name: str


class TransferDetails(AuditDetails):
    transfer_id: uuid.UUID
    name: str
    transfer_type: str
