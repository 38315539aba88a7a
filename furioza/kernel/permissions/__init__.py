"""
Permission Core - dynamic role-based access control and ban enforcement.
"""

from furioza.kernel.permissions.permission_service import (
    AuthorizationService,
    PermissionIndex,
    SELF_PROTECTED_PERMISSIONS,
    bootstrap_permissions,
    get_permission_index,
    parse_permission,
)
from furioza.kernel.permissions.ban import BanEnforcement, is_banned

__all__ = [
    "AuthorizationService",
    "PermissionIndex",
    "SELF_PROTECTED_PERMISSIONS",
    "bootstrap_permissions",
    "get_permission_index",
    "parse_permission",
    "BanEnforcement",
    "is_banned",
]
