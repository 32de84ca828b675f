"""
Session management using Redis for storage.

Sessions are issued by the sign-in service; this backend only resolves
them into the caller's identity, active organization and role.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from noblinks.core.config import settings


UTC = timezone.utc


class SessionData:
    """Session data structure."""

    def __init__(
        self,
        user_id: str,
        email: str,
        name: str,
        organization_id: Optional[str] = None,
        role: str = "member",
    ):
        self.user_id = user_id
        self.email = email
        self.name = name
        self.organization_id = organization_id
        self.role = role
        self.created_at = datetime.now(UTC)
        self.expires_at = self.created_at + timedelta(seconds=settings.session.ttl)

    def to_dict(self) -> dict[str, Any]:
        """Convert session data to dictionary."""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "organization_id": self.organization_id,
            "role": self.role,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionData":
        """Create session data from dictionary."""
        session = cls(
            user_id=data["user_id"],
            email=data["email"],
            name=data["name"],
            organization_id=data.get("organization_id"),
            role=data.get("role", "member"),
        )
        session.created_at = datetime.fromisoformat(data["created_at"])
        session.expires_at = datetime.fromisoformat(data["expires_at"])
        return session

    def is_expired(self) -> bool:
        """Check if session is expired."""
        return datetime.now(UTC) > self.expires_at

    def extend(self) -> None:
        """Extend session expiration."""
        self.expires_at = datetime.now(UTC) + timedelta(seconds=settings.session.ttl)


class SessionManager:
    """
    Session manager for handling user sessions.

    The actual Redis client is handed in through the Redis dependency.
    """

    def __init__(self, redis_client):
        self.redis = redis_client

    def _get_session_key(self, session_id: str) -> str:
        """Get Redis key for session."""
        return f"{settings.redis.session_prefix}{session_id}"

    async def get(self, session_id: str) -> Optional[SessionData]:
        """
        Get session data.

        Returns:
            Session data or None if not found or expired
        """
        data = await self.redis.get(self._get_session_key(session_id))

        if not data:
            return None

        session = SessionData.from_dict(json.loads(data))

        if session.is_expired():
            await self.destroy(session_id)
            return None

        return session

    async def extend(self, session_id: str) -> bool:
        """Extend session expiration. Returns False if not found."""
        session = await self.get(session_id)
        if not session:
            return False

        session.extend()
        await self.redis.setex(
            self._get_session_key(session_id),
            settings.session.ttl,
            json.dumps(session.to_dict()),
        )
        return True

    async def destroy(self, session_id: str) -> bool:
        """Destroy a session."""
        deleted = await self.redis.delete(self._get_session_key(session_id))
        return bool(deleted)
