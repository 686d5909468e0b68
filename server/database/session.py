"""
Async session management for SQLAlchemy.

Provides:
- Async engine and session factory
- Lifecycle management (init_db, close_db)
- ``session_scope`` context manager used by the snapshot store
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from server.database.models import Base
from server.settings import DatabaseSettings, get_database_settings

logger = logging.getLogger(__name__)

# Global engine and session factory (initialized once)
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get the global async engine.

    Raises:
        RuntimeError: If engine not initialized (call init_db first)
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_db() first.")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the global async session factory.

    Raises:
        RuntimeError: If session factory not initialized
    """
    if _async_session_factory is None:
        raise RuntimeError("Session factory not initialized. Call init_db() first.")
    return _async_session_factory


async def init_db(settings: Optional[DatabaseSettings] = None) -> None:
    """
    Initialize the database engine and session factory.

    Called once at application startup when snapshots are persisted.
    """
    global _engine, _async_session_factory

    settings = settings or get_database_settings()
    logger.info("Initializing database connection: %s", settings.database_url.split("@")[-1])

    _engine = create_async_engine(settings.database_url, **settings.get_engine_kwargs())
    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("Database initialized successfully")


async def close_db() -> None:
    """Close the database engine and cleanup resources."""
    global _engine, _async_session_factory

    if _engine is not None:
        logger.info("Closing database connection")
        await _engine.dispose()
        _engine = None
        _async_session_factory = None


async def create_tables() -> None:
    """Create all tables defined in Base.metadata."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created successfully")


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for database sessions.

    Usage:
        async with session_scope() as session:
            repo = SnapshotRepository(session)
            ...

    Auto-commits on success, rolls back on exception.
    """
    factory = get_session_factory()

    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
