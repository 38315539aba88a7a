"""
FastAPI dependencies for authentication and database sessions.
"""

import uuid
from functools import lru_cache
from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.database import async_session_maker
from furioza.kernel.errors import NotFound
from furioza.kernel.identity.actor import Actor
from furioza.kernel.identity.identity_service import IdentityService
from furioza.kernel.identity.jwt import verify_access_token
from furioza.kernel.roles import Role
from furioza.kernel.storage.blob_store import BlobStore, LocalBlobStore
from furioza.logging_config import bind_actor


# Security scheme
security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields one unit of work per request."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def _resolve(token: str, db: AsyncSession) -> Optional[Actor]:
    payload = verify_access_token(token)
    if not payload:
        return None
    try:
        profile_id = uuid.UUID(payload.sub)
    except ValueError:
        return None
    try:
        actor = await IdentityService(db).resolve_actor(profile_id)
    except NotFound:
        return None
    bind_actor(actor.id)
    return actor


async def get_current_actor_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> Optional[Actor]:
    """Get the calling actor if authenticated, None otherwise."""
    if not credentials:
        return None
    return await _resolve(credentials.credentials, db)


async def get_current_actor(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> Actor:
    """Get the calling actor or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    actor = await _resolve(credentials.credentials, db)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
OptionalActor = Annotated[Optional[Actor], Depends(get_current_actor_optional)]


async def require_admin(actor: CurrentActor) -> Actor:
    """Require the calling actor to hold the admin role."""
    if actor.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


AdminActor = Annotated[Actor, Depends(require_admin)]


@lru_cache
def get_blob_store() -> BlobStore:
    return LocalBlobStore()


Blobs = Annotated[BlobStore, Depends(get_blob_store)]
