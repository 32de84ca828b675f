"""
Shared pytest fixtures.

Tests run against an in-memory SQLite database and never reach Redis or
an AI provider: the session dependency and the intent extractor are
overridden per test.
"""

import os
import uuid
from types import SimpleNamespace
from typing import Optional, Sequence

# Must be set before noblinks.core.config is imported
os.environ["DB_URL"] = "sqlite+aiosqlite://"
os.environ["APP_ENV"] = "staging"
os.environ["LOG_REQUESTS"] = "false"
os.environ["AI_OPENAI_API_KEY"] = ""
os.environ["AI_OPENROUTER_API_KEY"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from noblinks.api.v1.assistant import get_intent_extractor
from noblinks.core.database import Base, get_db
from noblinks.core.dependencies import get_current_user_optional
from noblinks.core.session import SessionData
from noblinks.main import app
from noblinks.models.capability import MonitoringCapability
from noblinks.schemas.alerting import IntentResult
from noblinks.seed import seed_capabilities
from noblinks.services.alerting.intent import IntentExtractor


# =============================================================================
# Helpers
# =============================================================================

class StubExtractor(IntentExtractor):
    """Returns a canned result (or raises a canned error) and records calls."""

    def __init__(self, result: Optional[IntentResult] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    async def extract(self, prompt: str, catalog: Sequence[MonitoringCapability]) -> IntentResult:
        self.calls.append((prompt, [c.capability_key for c in catalog]))
        if self.error is not None:
            raise self.error
        return self.result


def make_intent(**overrides) -> IntentResult:
    data = {
        "matched": True,
        "capabilityKey": "linux_memory_usage_high",
        "params": {"machine": "prod-server-1", "threshold": 90, "window": "10m"},
        "severity": "critical",
        "alertName": None,
        "description": None,
        "noMatchReason": None,
    }
    data.update(overrides)
    return IntentResult.model_validate(data)


def make_user(role: str = "owner", organization_id: Optional[uuid.UUID] = None) -> SessionData:
    return SessionData(
        user_id=str(uuid.uuid4()),
        email="ops@example.com",
        name="Ops",
        organization_id=str(organization_id) if organization_id else None,
        role=role,
    )


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def catalog(session_factory):
    """Seed the default Linux catalog; returns capabilities keyed by capability_key."""
    async with session_factory() as session:
        await seed_capabilities(session)
        await session.commit()
        result = await session.execute(select(MonitoringCapability))
        capabilities = result.scalars().all()
    return {c.capability_key: c for c in capabilities}


@pytest.fixture
def org_id() -> uuid.UUID:
    return uuid.uuid4()


# =============================================================================
# API client
# =============================================================================

@pytest.fixture
def extractor() -> StubExtractor:
    return StubExtractor(result=make_intent())


@pytest.fixture
def auth(org_id):
    """Mutable holder for the caller; set ``auth.user = None`` for anonymous requests."""
    return SimpleNamespace(user=make_user(organization_id=org_id))


@pytest.fixture
async def client(session_factory, extractor, auth):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user_optional():
        return auth.user

    async def override_get_intent_extractor():
        yield extractor

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_optional] = override_get_current_user_optional
    app.dependency_overrides[get_intent_extractor] = override_get_intent_extractor

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
