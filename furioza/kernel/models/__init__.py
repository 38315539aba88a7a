"""
Kernel Data Models

Core SQLAlchemy models: profiles, the role permission matrix, forum content,
transfers and the append-only audit log.
"""

from furioza.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow, as_utc
from furioza.kernel.models.user import Profile
from furioza.kernel.models.permission import RolePermission, PermissionKey, PERMISSION_LABELS
from furioza.kernel.models.forum import Category, Thread, Post, ThreadView
from furioza.kernel.models.transfer import Transfer, TransferType
from furioza.kernel.models.audit_log import AuditLogEntry, AuditAction

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    "as_utc",
    # Identity
    "Profile",
    # Permissions
    "RolePermission",
    "PermissionKey",
    "PERMISSION_LABELS",
    # Forum
    "Category",
    "Thread",
    "Post",
    "ThreadView",
    # Transfers
    "Transfer",
    "TransferType",
    # Audit
    "AuditLogEntry",
    "AuditAction",
]
