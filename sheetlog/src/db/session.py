"""
Async database engine and session factory.

Uses SQLAlchemy 2.x async engine; the default deployment is a single SQLite
file through the aiosqlite driver (``sqlite+aiosqlite:///...``). Provides
module-level engine and session factory singletons, table creation at
startup, plus an async generator for FastAPI dependency injection.

CHANGELOG:
- 2026-10-16: Create tables at startup, add dispose_engine for shutdown
- 2026-02-14: Initial creation (STORY-007)
"""

import os
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.db.models import Base

# Module-level singletons, initialized lazily via init_engine().
async_engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None


def _get_database_url() -> str:
    """Read DATABASE_URL from environment.

    Returns:
        str: The database connection URL.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL environment variable is required")
    return url


def create_engine(url: str | None = None) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        url: Database URL. Defaults to DATABASE_URL from the environment.

    Returns:
        AsyncEngine: Configured async engine.
    """
    return create_async_engine(url or _get_database_url(), echo=False)


def create_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory.

    Args:
        engine: Optional async engine. If not provided, creates one from config.

    Returns:
        async_sessionmaker: Factory for creating AsyncSession instances.
    """
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def init_engine() -> None:
    """Initialize the module-level async engine and session factory.

    Safe to call multiple times; subsequent calls are no-ops.
    """
    global async_engine, async_session_factory  # noqa: PLW0603
    if async_engine is None:
        async_engine = create_engine()
        async_session_factory = create_session_factory(async_engine)


async def create_tables(engine: AsyncEngine) -> None:
    """Create the sheet tables if they do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Initialize the engine and make sure the schema exists.

    Call this at application startup (in the FastAPI lifespan).
    """
    init_engine()
    assert async_engine is not None, "Engine not initialized"
    await create_tables(async_engine)


async def dispose_engine() -> None:
    """Dispose the module-level engine and forget the singletons."""
    global async_engine, async_session_factory  # noqa: PLW0603
    if async_engine is not None:
        await async_engine.dispose()
    async_engine = None
    async_session_factory = None


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for FastAPI dependency injection.

    Initializes the engine on first call if not already done.
    The session is automatically closed after the request completes.

    Yields:
        AsyncSession: An async SQLAlchemy session.
    """
    init_engine()
    assert async_session_factory is not None, "Session factory not initialized"
    async with async_session_factory() as session:
        yield session
