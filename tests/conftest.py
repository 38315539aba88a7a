"""
Pytest fixtures for Furioza tests.

Each test runs against a freshly created file-backed SQLite database, so the
separate sessions a test opens (and the app under test) share one store.
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator

_tmp_dir = tempfile.mkdtemp(prefix="furioza-tests-")
TEST_DB_PATH = os.path.join(_tmp_dir, "test.db")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["BLOB_ROOT"] = os.path.join(_tmp_dir, "blobs")
os.environ["BLOB_PUBLIC_BASE_URL"] = "http://test/blobs"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-0123456789"
os.environ["VIEW_COUNT_POLICY"] = "per_viewer"
# Force config reload so every module sees the test settings
from furioza.config import get_settings
get_settings.cache_clear()

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from furioza.database import create_engine_for, create_session_maker, unit_of_work
from furioza.engines.community.categories import CategoryService
from furioza.engines.community.threads import ThreadService
from furioza.kernel.identity.actor import Actor
from furioza.kernel.identity.identity_service import IdentityService
from furioza.kernel.identity.jwt import JWTManager
from furioza.kernel.models import Base
from furioza.kernel.permissions.permission_service import (
    AuthorizationService,
    PermissionIndex,
    bootstrap_permissions,
    get_permission_index,
)
from furioza.kernel.roles import Role


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine over an empty schema."""
    engine = create_engine_for(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_maker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """A bare session; tests that need commit semantics use unit_of_work."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def permission_index() -> PermissionIndex:
    """The process-wide index, dropped around every test."""
    index = get_permission_index()
    index.invalidate()
    yield index
    index.invalidate()


async def create_actor(session_maker, username: str, role: Role = Role.ZAWODNIK) -> Actor:
    async with unit_of_work(session_maker) as session:
        profile = await IdentityService(session).create_profile(
            username, f"{username}@furioza.pl", role=role,
        )
        return Actor.from_profile(profile)


@pytest.fixture
def load_actor(session_maker):
    """Re-read an actor snapshot from the store."""

    async def _load(actor_id: uuid.UUID) -> Actor:
        async with session_maker() as session:
            return await IdentityService(session).resolve_actor(actor_id)

    return _load


@pytest_asyncio.fixture
async def admin(session_maker) -> Actor:
    """Admin with the bootstrap grants (every permission)."""
    async with unit_of_work(session_maker) as session:
        await bootstrap_permissions(session)
    return await create_actor(session_maker, "prezes", Role.ADMIN)


@pytest_asyncio.fixture
async def kapitan(session_maker) -> Actor:
    return await create_actor(session_maker, "kapitan", Role.KAPITAN)


@pytest_asyncio.fixture
async def trener(session_maker) -> Actor:
    return await create_actor(session_maker, "trener", Role.TRENER)


@pytest_asyncio.fixture
async def zawodnik(session_maker) -> Actor:
    return await create_actor(session_maker, "zawodnik", Role.ZAWODNIK)


@pytest.fixture
def grant(session_maker, admin):
    """Grant permissions to a role through the regular admin path."""

    async def _grant(role: Role, *permissions: str) -> None:
        async with unit_of_work(session_maker) as session:
            authorization = AuthorizationService(session)
            for permission in permissions:
                await authorization.grant_permission(admin, role, permission)

    return _grant


@pytest_asyncio.fixture
async def category_id(session_maker, admin) -> uuid.UUID:
    async with unit_of_work(session_maker) as session:
        category = await CategoryService(session).create_category(admin, "Szatnia", "Rozmowy o drużynie")
        return category.id


@pytest_asyncio.fixture
async def thread_id(session_maker, category_id, zawodnik) -> uuid.UUID:
    async with unit_of_work(session_maker) as session:
        thread = await ThreadService(session).create_thread(
            zawodnik, category_id, "Trening w sobotę", "Kto będzie na treningu?",
        )
        return thread.id


@pytest.fixture
def jwt_manager() -> JWTManager:
    """JWT manager using the test secret."""
    return JWTManager()


@pytest.fixture
def auth_headers(jwt_manager):
    """Build bearer headers for an actor."""

    def _headers(actor: Actor) -> dict:
        token, _, _ = jwt_manager.create_access_token(actor.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers
