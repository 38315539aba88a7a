"""
Role -> permission grant records.

Presence of a row means the role holds the capability. There is no hierarchy
and no inheritance between roles; absence is a denial.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict

from sqlalchemy import DateTime, String, UniqueConstraint, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from furioza.kernel.models.base import Base, generate_uuid, utcnow
from furioza.kernel.roles import Role


class PermissionKey(str, Enum):
    """Capabilities an admin can grant to a role."""
    EDIT_ANY_PROFILE = "edit_any_profile"
    DELETE_THREADS = "delete_threads"
    MANAGE_TRANSFERS = "manage_transfers"
    MANAGE_CATEGORIES = "manage_categories"
    BAN_USERS = "ban_users"
    MANAGE_ROLES = "manage_roles"
    MODERATE_THREADS = "moderate_threads"


PERMISSION_LABELS: Dict[PermissionKey, str] = {
    PermissionKey.EDIT_ANY_PROFILE: "Edycja profili innych użytkowników",
    PermissionKey.DELETE_THREADS: "Usuwanie wątków",
    PermissionKey.MANAGE_TRANSFERS: "Zarządzanie transferami",
    PermissionKey.MANAGE_CATEGORIES: "Zarządzanie kategoriami",
    PermissionKey.BAN_USERS: "Banowanie użytkowników",
    PermissionKey.MANAGE_ROLES: "Zarządzanie rolami",
    PermissionKey.MODERATE_THREADS: "Moderowanie wątków",
}


class RolePermission(Base):
    """A single (role, permission) grant."""

    __tablename__ = "role_permissions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    role: Mapped[Role] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )
    permission: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("role", "permission", name="uq_role_permissions_role_permission"),
    )

    def __repr__(self) -> str:
        return f"<RolePermission {self.role}:{self.permission}>"
