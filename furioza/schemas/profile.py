"""
Profile schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from furioza.schemas.common import enum_value


class ProfileResponse(BaseModel):
    """Profile as seen by its owner and by admins."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    is_banned: bool
    last_email_change: Optional[datetime] = None
    last_avatar_change: Optional[datetime] = None
    created_at: datetime

    @field_validator("role", mode="before")
    @classmethod
    def plain_role(cls, value):
        return enum_value(value)


class DescriptionUpdate(BaseModel):
    description: str = Field("", max_length=2000)


class EmailUpdate(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)


class FieldCooldown(BaseModel):
    """Cooldown state of one gated field."""

    field: str
    allowed: bool
    days_remaining: int


class CooldownStatusResponse(BaseModel):
    fields: List[FieldCooldown]


class AdminProfileEdit(BaseModel):
    """Admin edit of another profile; omitted fields stay unchanged."""

    username: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[str] = None
    description: Optional[str] = Field(None, max_length=2000)
