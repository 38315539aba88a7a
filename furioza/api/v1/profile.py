"""
Self-service profile endpoints.
"""

from fastapi import APIRouter, Query, Request

from furioza.api.deps import Blobs, CurrentActor, DbSession
from furioza.kernel.identity.identity_service import IdentityService
from furioza.kernel.profile.profile_service import ProfileService
from furioza.schemas.profile import (
    CooldownStatusResponse,
    DescriptionUpdate,
    EmailUpdate,
    FieldCooldown,
    ProfileResponse,
)

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(actor: CurrentActor, db: DbSession):
    profile = await IdentityService(db).require_profile(actor.id)
    return ProfileResponse.model_validate(profile)


@router.get("/me/cooldowns", response_model=CooldownStatusResponse)
async def get_cooldowns(actor: CurrentActor, db: DbSession):
    """Whether email and avatar can be changed now."""
    status_by_field = await ProfileService(db).cooldown_status(actor)
    return CooldownStatusResponse(
        fields=[
            FieldCooldown(field=field.value, allowed=d.allowed, days_remaining=d.days_remaining)
            for field, d in status_by_field.items()
        ]
    )


@router.put("/me/description", response_model=ProfileResponse)
async def update_description(data: DescriptionUpdate, actor: CurrentActor, db: DbSession):
    profile = await ProfileService(db).update_description(actor, data.description)
    return ProfileResponse.model_validate(profile)


@router.put("/me/email", response_model=ProfileResponse)
async def update_email(data: EmailUpdate, actor: CurrentActor, db: DbSession):
    """Change email; allowed once per cooldown window."""
    profile = await ProfileService(db).update_email(actor, data.email)
    return ProfileResponse.model_validate(profile)


@router.put("/me/avatar", response_model=ProfileResponse)
async def update_avatar(
    request: Request,
    actor: CurrentActor,
    db: DbSession,
    blobs: Blobs,
    filename: str = Query(..., min_length=1, max_length=255),
):
    """
    Upload a new avatar. The request body is the raw image; the filename
    query parameter carries its extension.
    """
    data = await request.body()
    profile = await ProfileService(db).update_avatar(actor, filename, data, blobs)
    return ProfileResponse.model_validate(profile)
