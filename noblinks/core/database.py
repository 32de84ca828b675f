"""
Database configuration and session management.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from noblinks.core.config import settings


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def _engine_options() -> dict[str, Any]:
    # SQLite (local runs, tests) does not accept pool sizing arguments
    if settings.database.dsn.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.database.pool_size,
        "max_overflow": settings.database.max_overflow,
    }


# Create async engine
engine = create_async_engine(
    settings.database.dsn,
    echo=settings.app.app_debug,
    **_engine_options(),
)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session for dependency injection.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session as a context manager.

    Yields:
        AsyncSession: Database session

    Example:
        async with get_db_context() as session:
            result = await session.execute(query)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Initialize database (create tables if they don't exist)."""
    async with engine.begin() as conn:
        # Import all models here to ensure they are registered with Base
        from noblinks.models import alert  # noqa: F401
        from noblinks.models import capability  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
