"""
Dependency injection utilities for FastAPI.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, Optional

import structlog
from fastapi import Depends, HTTPException, Request, Response, status
from redis.asyncio import Redis

from noblinks.core.config import settings
from noblinks.core.session import SessionData, SessionManager

logger = structlog.get_logger(__name__)


# ============================================================================
# Redis Dependency
# ============================================================================

# Global Redis connection pool (singleton pattern)
_redis_pool: Redis | None = None


async def get_redis_pool() -> Redis:
    """
    Get or create global Redis connection pool.

    This ensures we reuse the same connection pool across all requests
    instead of creating a new connection for each request.
    """
    global _redis_pool

    if _redis_pool is None:
        _redis_pool = Redis(
            host=settings.redis.host,
            port=settings.redis.port,
            password=settings.redis.password if settings.redis.password else None,
            db=settings.redis.db,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis.pool_size,
        )
        try:
            await _redis_pool.ping()
        except Exception as e:
            _redis_pool = None
            raise RuntimeError(f"Failed to connect to Redis: {e}") from e

    return _redis_pool


async def get_redis() -> Redis:
    """Get Redis client for dependency injection."""
    return await get_redis_pool()


async def close_redis() -> None:
    """Close the shared Redis pool if it was opened."""
    global _redis_pool

    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


RedisDep = Annotated[Redis, Depends(get_redis)]


# ============================================================================
# Session Manager Dependency
# ============================================================================

async def get_session_manager(redis: RedisDep) -> SessionManager:
    """Get session manager for dependency injection."""
    return SessionManager(redis)


SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]


# ============================================================================
# Current User Dependency
# ============================================================================

async def get_current_user_optional(
    request: Request,
    response: Response,
    session_manager: SessionManagerDep,
) -> Optional[SessionData]:
    """
    Get current user from session cookie (optional).

    Returns None if not authenticated, doesn't raise exception.
    """
    # Skip authentication for OPTIONS requests (CORS preflight)
    if request.method == "OPTIONS":
        return None

    session_id = request.cookies.get(settings.session.cookie_name)
    if not session_id:
        logger.debug("No session cookie found", path=request.url.path)
        return None

    session = await session_manager.get(session_id)

    if not session:
        # Clear invalid cookie
        response.delete_cookie(settings.session.cookie_name, path="/")
        return None

    # Only extend if less than half of the TTL remains
    if settings.session.extend_on_activity:
        remaining = (session.expires_at - datetime.now(timezone.utc)).total_seconds()
        if remaining < settings.session.ttl / 2:
            await session_manager.extend(session_id)

    return session


async def get_current_user(
    session_data: Annotated[Optional[SessionData], Depends(get_current_user_optional)],
) -> SessionData:
    """
    Get current authenticated user.

    Raises 401 if not authenticated.
    """
    if session_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Session"},
        )

    return session_data


CurrentUserDep = Annotated[SessionData, Depends(get_current_user)]


# ============================================================================
# Organization (tenant) Dependency
# ============================================================================

async def get_organization_id(current_user: CurrentUserDep) -> uuid.UUID:
    """
    Get the active organization of the current user.

    Every alert read and write is scoped to this value. Raises 403 when
    the session has no active organization.
    """
    if not current_user.organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active organization",
        )

    try:
        return uuid.UUID(str(current_user.organization_id))
    except ValueError:
        logger.warning(
            "Malformed organization id in session",
            user_id=current_user.user_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active organization",
        )


OrganizationIdDep = Annotated[uuid.UUID, Depends(get_organization_id)]

