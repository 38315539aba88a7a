"""
Stable Kernel Layer

Foundational components every other layer builds on:
- Identity Core (profiles, Actor snapshots)
- Permission Core (role registry, dynamic permission matrix, bans)
- Profile Core (cooldown-gated self-service edits)
- Audit Log (append-only record of privileged actions)

Architectural Invariants:
- Privileged mutations and their audit entry commit in one transaction
- Authorization is recomputed from the store on every call
- Audit entries are never updated or deleted
"""

from furioza.kernel.models import (
    Profile,
    RolePermission,
    PermissionKey,
    Category,
    Thread,
    Post,
    ThreadView,
    Transfer,
    TransferType,
    AuditLogEntry,
    AuditAction,
)
from furioza.kernel.roles import Role

__all__ = [
    # Identity
    "Profile",
    "Role",
    # Permissions
    "RolePermission",
    "PermissionKey",
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
