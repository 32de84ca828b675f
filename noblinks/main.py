"""
Main FastAPI application entry point.
"""

import logging
import subprocess
import sys
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from noblinks.api.v1 import alerts, assistant, capabilities, health
from noblinks.core.config import ROOT_DIR, settings
from noblinks.core.database import close_db, init_db
from noblinks.core.dependencies import close_redis
from noblinks.services.alerting.errors import AlertingError, ProviderError


logging.basicConfig(format="%(message)s", level=settings.log.level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.log.format == "json" else structlog.dev.ConsoleRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info("Starting application", version=settings.app.app_version, env=settings.app.app_env)

    try:
        if settings.database.auto_migrate:
            logger.info("Running database migrations")
            subprocess.run(
                [sys.executable, "-m", "alembic", "upgrade", "head"],
                cwd=str(ROOT_DIR),
                check=True,
            )
    except Exception as e:
        logger.warning("Failed to run migrations", error=str(e))

    # create_all is idempotent and only fills in missing tables
    try:
        await init_db()
        logger.info("Database tables verified via init_db")
    except Exception as init_error:
        logger.error("Failed to initialize database", error=str(init_error))

    logger.info(
        "Configuration loaded",
        app_name=settings.app.app_name,
        db_host=settings.database.host,
        ai_provider=settings.ai.provider or "not configured",
        cors_origins=settings.app.cors_origins_list,
    )

    yield

    logger.info("Shutting down application")
    await close_redis()
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app.app_name,
    version=settings.app.app_version,
    description="Noblinks - infrastructure monitoring and alert assistant API",
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    lifespan=lifespan,
)


# ============================================================================
# Middleware
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins_list,
    allow_credentials=settings.app.cors_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log all requests and add request ID."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            error=str(e),
            duration_ms=round((time.time() - start_time) * 1000, 2),
            request_id=request_id,
        )
        raise

    response.headers["X-Request-ID"] = request_id
    if settings.log.requests:
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2),
            request_id=request_id,
        )
    return response


# ============================================================================
# Exception Handlers
# ============================================================================


@app.exception_handler(AlertingError)
async def alerting_exception_handler(request, exc: AlertingError):
    """Render alerting errors as ``{error, message, retryable, ...}``."""
    log = logger.error if isinstance(exc, ProviderError) else logger.info
    log(
        "Alerting request failed",
        error=exc.code,
        status_code=exc.status_code,
        path=request.url.path,
        detail=exc.detail,
        request_id=getattr(request.state, "request_id", None),
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_detail=settings.app.is_development),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Handle request body / query validation errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=400,
        content={
            "error": "validation_error",
            "message": "Invalid request",
            "details": errors,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An internal error occurred" if not settings.app.is_development else str(exc),
        },
    )


# ============================================================================
# Routes
# ============================================================================

app.include_router(health.router, prefix="/api/v1")
app.include_router(capabilities.router, prefix="/api/v1")
app.include_router(alerts.router, prefix="/api/v1")
app.include_router(assistant.router, prefix="/api/v1")
