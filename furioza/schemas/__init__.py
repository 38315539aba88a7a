"""
Pydantic schemas for API request/response validation.
"""

from furioza.schemas.common import ErrorResponse, HealthResponse, PaginatedResponse
from furioza.schemas.profile import (
    ProfileResponse,
    DescriptionUpdate,
    EmailUpdate,
    FieldCooldown,
    CooldownStatusResponse,
    AdminProfileEdit,
)
from furioza.schemas.forum import (
    CategoryCreate,
    CategoryResponse,
    ThreadCreate,
    ThreadResponse,
    ThreadListItem,
    PostCreate,
    PostResponse,
    ThreadDeleteResponse,
    ViewCountResponse,
)
from furioza.schemas.transfer import TransferCreate, TransferResponse
from furioza.schemas.admin import (
    RoleChangeRequest,
    PermissionGrantRequest,
    RolePermissions,
    PermissionMatrixResponse,
    BanToggleResponse,
    AuditEntryResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "PaginatedResponse",
    "ProfileResponse",
    "DescriptionUpdate",
    "EmailUpdate",
    "FieldCooldown",
    "CooldownStatusResponse",
    "AdminProfileEdit",
    "CategoryCreate",
    "CategoryResponse",
    "ThreadCreate",
    "ThreadResponse",
    "ThreadListItem",
    "PostCreate",
    "PostResponse",
    "ThreadDeleteResponse",
    "ViewCountResponse",
    "TransferCreate",
    "TransferResponse",
    "RoleChangeRequest",
    "PermissionGrantRequest",
    "RolePermissions",
    "PermissionMatrixResponse",
    "BanToggleResponse",
    "AuditEntryResponse",
]
