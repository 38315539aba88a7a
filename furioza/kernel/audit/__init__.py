"""
Audit infrastructure.

Provides append-only recording of privileged actions.
"""

from furioza.kernel.audit.audit_log import AuditLog
from furioza.kernel.audit.details import (
    AuditDetails,
    RoleChangedDetails,
    PermissionChangedDetails,
    ProfileEditedDetails,
    ThreadModeratedDetails,
    ThreadDeletedDetails,
    PostDeletedDetails,
    ThreadCreatedDetails,
    CategoryDetails,
    TransferDetails,
)

__all__ = [
    "AuditLog",
    "AuditDetails",
    "RoleChangedDetails",
    "PermissionChangedDetails",
    "ProfileEditedDetails",
    "ThreadModeratedDetails",
    "ThreadDeletedDetails",
    "PostDeletedDetails",
    "ThreadCreatedDetails",
    "CategoryDetails",
    "TransferDetails",
]
