"""
Database connection and session management.
Uses SQLAlchemy 2.0 async pattern.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from furioza.config import get_settings

settings = get_settings()


def create_engine_for(database_url: str, echo: bool = False) -> AsyncEngine:
    """Build an async engine with the per-dialect options we rely on."""
    if database_url.startswith("sqlite"):
        # SQLite with NullPool: every session gets its own connection.
        engine = create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            """Enable WAL mode + foreign keys on every new SQLite connection."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

        return engine

    # PostgreSQL settings with connection pooling
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = create_engine_for(settings.database_url, echo=settings.debug)

# Session factory
async_session_maker = create_session_maker(engine)


@asynccontextmanager
async def unit_of_work(
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    One atomic transaction around a component operation.

    Services only flush; the mutation, its audit entry and any cascade
    commit together here or roll back together on any exception.
    """
    async with (session_maker or async_session_maker)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Initialize database tables and seed the permission matrix."""
    # Import Base from kernel models to ensure all models are registered
    from furioza.kernel.models import Base
    from furioza.kernel.permissions.permission_service import bootstrap_permissions

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.bootstrap_permissions:
        async with unit_of_work() as session:
            await bootstrap_permissions(session)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
