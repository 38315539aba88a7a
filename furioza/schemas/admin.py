"""
Administration schemas: roles, permission matrix, bans and audit log.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from furioza.schemas.common import enum_value


class RoleChangeRequest(BaseModel):
    role: str


class PermissionGrantRequest(BaseModel):
    role: str
    permission: str


class RolePermissions(BaseModel):
    """Grants of one role."""

    role: str
    label: str
    permissions: List[str]


class PermissionMatrixResponse(BaseModel):
    roles: List[RolePermissions]
    available_permissions: Dict[str, str]


class BanToggleResponse(BaseModel):
    user_id: uuid.UUID
    is_banned: bool


class AuditEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    admin_id: uuid.UUID
    action: str
    target_user_id: Optional[uuid.UUID] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    @field_validator("action", mode="before")
    @classmethod
    def plain_action(cls, value):
        return enum_value(value)
