"""
Administration endpoints: users, roles, permission matrix and audit log.
"""

import uuid
from typing import List

from fastapi import APIRouter, Query, status

from furioza.api.deps import AdminActor, CurrentActor, DbSession
from furioza.config import get_settings
from furioza.kernel.audit.audit_log import AuditLog, MAX_PAGE_SIZE
from furioza.kernel.identity.identity_service import IdentityService
from furioza.kernel.models.permission import PERMISSION_LABELS
from furioza.kernel.permissions.ban import BanEnforcement
from furioza.kernel.permissions.permission_service import AuthorizationService
from furioza.kernel.profile.profile_service import ProfileService
from furioza.kernel.roles import display_order, role_label
from furioza.schemas.admin import (
    AuditEntryResponse,
    BanToggleResponse,
    PermissionGrantRequest,
    PermissionMatrixResponse,
    RoleChangeRequest,
    RolePermissions,
)
from furioza.schemas.common import PaginatedResponse
from furioza.schemas.profile import AdminProfileEdit, ProfileResponse

router = APIRouter()
settings = get_settings()


async def _matrix_response(authorization: AuthorizationService) -> PermissionMatrixResponse:
    matrix = await authorization.get_matrix()
    return PermissionMatrixResponse(
        roles=[
            RolePermissions(
                role=role.value,
                label=role_label(role),
                permissions=sorted(matrix.get(role, frozenset())),
            )
            for role in display_order()
        ],
        available_permissions={key.value: label for key, label in PERMISSION_LABELS.items()},
    )


@router.get("/users", response_model=List[ProfileResponse])
async def list_users(admin: AdminActor, db: DbSession):
    profiles = await IdentityService(db).list_profiles()
    return [ProfileResponse.model_validate(p) for p in profiles]


@router.patch("/users/{user_id}", response_model=ProfileResponse)
async def edit_user(user_id: uuid.UUID, data: AdminProfileEdit, actor: CurrentActor, db: DbSession):
    """Edit another member's profile (edit_any_profile)."""
    profile = await ProfileService(db).edit_profile(
        actor,
        user_id,
        username=data.username,
        email=data.email,
        description=data.description,
    )
    return ProfileResponse.model_validate(profile)


@router.put("/users/{user_id}/role", response_model=ProfileResponse)
async def change_role(user_id: uuid.UUID, data: RoleChangeRequest, actor: CurrentActor, db: DbSession):
    profile = await AuthorizationService(db).change_role(actor, user_id, data.role)
    return ProfileResponse.model_validate(profile)


@router.post("/users/{user_id}/ban", response_model=BanToggleResponse)
async def toggle_ban(user_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    """Ban or unban a member."""
    banned = await BanEnforcement(db).toggle_ban(actor, user_id)
    return BanToggleResponse(user_id=user_id, is_banned=banned)


@router.get("/permissions", response_model=PermissionMatrixResponse)
async def get_permission_matrix(actor: CurrentActor, db: DbSession):
    return await _matrix_response(AuthorizationService(db))


@router.post(
    "/permissions",
    response_model=PermissionMatrixResponse,
    status_code=status.HTTP_201_CREATED,
)
async def grant_permission(data: PermissionGrantRequest, actor: CurrentActor, db: DbSession):
    authorization = AuthorizationService(db)
    await authorization.grant_permission(actor, data.role, data.permission)
    return await _matrix_response(authorization)


@router.delete("/permissions/{role}/{permission}", response_model=PermissionMatrixResponse)
async def revoke_permission(role: str, permission: str, actor: CurrentActor, db: DbSession):
    authorization = AuthorizationService(db)
    await authorization.revoke_permission(actor, role, permission)
    return await _matrix_response(authorization)


@router.get("/audit-log", response_model=PaginatedResponse[AuditEntryResponse])
async def get_audit_log(
    admin: AdminActor,
    db: DbSession,
    limit: int = Query(settings.audit_page_size, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
):
    """Privileged actions, newest first."""
    audit_log = AuditLog(db)
    entries = await audit_log.query(limit=limit, offset=offset)
    total = await audit_log.count()
    return PaginatedResponse.create(
        items=[AuditEntryResponse.model_validate(e) for e in entries],
        total=total,
        limit=limit,
        offset=offset,
    )
