"""
Tests for Redis-backed session resolution and role permissions.
"""
import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from noblinks.authz.casbin_enforcer import enforce
from noblinks.authz.dependencies import has_permission
from noblinks.core.config import settings
from noblinks.core.session import SessionData, SessionManager


class InMemoryRedis:
    """The subset of redis.asyncio.Redis used by SessionManager."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def get(self, key):
        return self.store.get(key)

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


@pytest.fixture
def redis():
    return InMemoryRedis()


@pytest.fixture
def manager(redis):
    return SessionManager(redis)


def make_session(**overrides):
    data = {"user_id": "u-1", "email": "ops@example.com", "name": "Ops",
            "organization_id": "5f0c8a52-3f7e-4c8e-9a59-2f4f3c9f6a10", "role": "admin"}
    data.update(overrides)
    return SessionData(**data)


async def store_session(redis, session):
    """Write a session the way the sign-in service does."""
    session_id = uuid.uuid4().hex
    await redis.setex(f"{settings.redis.session_prefix}{session_id}", settings.session.ttl, json.dumps(session.to_dict()))
    return session_id


class TestSessionManager:

    async def test_round_trip_keeps_org_and_role(self, manager, redis):
        session_id = await store_session(redis, make_session())

        assert f"{settings.redis.session_prefix}{session_id}" in redis.store
        session = await manager.get(session_id)
        assert session.organization_id == "5f0c8a52-3f7e-4c8e-9a59-2f4f3c9f6a10"
        assert session.role == "admin"

    async def test_unknown_session(self, manager):
        assert await manager.get("missing") is None

    async def test_expired_session_destroyed(self, manager, redis):
        session = make_session()
        session.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        session_id = await store_session(redis, session)

        assert await manager.get(session_id) is None
        assert redis.store == {}

    async def test_extend_pushes_expiry(self, manager, redis):
        session = make_session()
        session.expires_at = datetime.now(timezone.utc) + timedelta(seconds=5)
        session_id = await store_session(redis, session)

        assert await manager.extend(session_id) is True
        extended = await manager.get(session_id)
        assert extended.expires_at > datetime.now(timezone.utc) + timedelta(seconds=settings.session.ttl - 60)

    async def test_destroy(self, manager, redis):
        session_id = await store_session(redis, make_session())
        assert await manager.destroy(session_id) is True
        assert await manager.destroy(session_id) is False

    def test_legacy_payload_defaults_to_member(self):
        now = datetime.now(timezone.utc)
        session = SessionData.from_dict({
            "user_id": "u-1", "email": "a@b.c", "name": "A",
            "created_at": now.isoformat(),
            "expires_at": (now + timedelta(hours=1)).isoformat(),
        })
        assert session.role == "member"
        assert session.organization_id is None


class TestRolePermissions:

    @pytest.mark.parametrize("role", ["owner", "admin"])
    @pytest.mark.parametrize("permission", ["alert.create", "alert.update", "alert.delete"])
    def test_managers_can_write(self, role, permission):
        assert has_permission(role, permission)

    @pytest.mark.parametrize("permission", ["alert.create", "alert.update", "alert.delete"])
    def test_member_cannot_write(self, permission):
        assert not has_permission("member", permission)

    @pytest.mark.parametrize("role", ["owner", "admin", "member"])
    def test_every_role_can_view(self, role):
        assert has_permission(role, "alert.view")
        assert has_permission(role, "capability.view")

    @pytest.mark.parametrize("role", ["owner", "admin", "member"])
    def test_unlisted_action_denied(self, role):
        assert not has_permission(role, "alert.acknowledge")
        assert not has_permission(role, "capability.create")

    def test_unknown_role_has_nothing(self):
        assert not has_permission("guest", "alert.view")

    def test_malformed_permission_key_denied(self):
        assert not has_permission("owner", "alert")


class TestEnforcer:

    def test_owner_inherits_member_grants(self):
        assert enforce("owner", "capability", "view")

    def test_action_pattern_is_anchored(self):
        assert not enforce("admin", "alert", "create_all")
        assert not enforce("admin", "alert", "viewer")
