"""
Health check and system status endpoints.
"""

from typing import Optional

import structlog
from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from noblinks.core.config import settings
from noblinks.core.database import engine
from noblinks.core.dependencies import get_redis

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: Optional[str] = None
    redis: Optional[str] = None
    ai_provider: Optional[str] = None


@router.get("/healthz", response_model=HealthResponse)
async def health_check():
    """
    Basic health check endpoint.

    Returns the service status without checking dependencies.
    """
    return HealthResponse(status="healthy", version=settings.app.app_version)


@router.get("/health", response_model=HealthResponse)
async def health_detailed():
    """Detailed health check with dependency status."""
    db_status = "unhealthy"
    redis_status = "unhealthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        logger.warning("Database health check failed", error=str(e))

    try:
        redis = await get_redis()
        await redis.ping()
        redis_status = "healthy"
    except Exception as e:
        logger.warning("Redis health check failed", error=str(e))

    overall_status = "healthy" if db_status == "healthy" and redis_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.app.app_version,
        database=db_status,
        redis=redis_status,
        ai_provider=settings.ai.provider or "not configured",
    )
