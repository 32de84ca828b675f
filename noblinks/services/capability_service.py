"""
Capability catalog service.

Read-only access to the monitoring capability catalog, plus the upsert
used by the seed script.
"""

import uuid
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from noblinks.models.capability import MonitoringCapability
from noblinks.services.alerting.templates import template_placeholders

logger = structlog.get_logger(__name__)


class CapabilityService:
    """Service for reading the capability catalog."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_capabilities(self, category: Optional[str] = None) -> List[MonitoringCapability]:
        """List capabilities, optionally restricted to one category."""
        query = select(MonitoringCapability)
        if category:
            query = query.where(MonitoringCapability.category == category)
        query = query.order_by(MonitoringCapability.category, MonitoringCapability.capability_key)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_key(self, capability_key: str) -> Optional[MonitoringCapability]:
        """Get a capability by its stable key."""
        result = await self.db.execute(
            select(MonitoringCapability).where(MonitoringCapability.capability_key == capability_key)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, capability_id: uuid.UUID) -> Optional[MonitoringCapability]:
        """Get a capability by primary key."""
        result = await self.db.execute(
            select(MonitoringCapability).where(MonitoringCapability.id == capability_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, data: Dict[str, Any]) -> MonitoringCapability:
        """
        Insert or update a capability keyed on ``capability_key``.

        Raises:
            ValueError: if the template references a placeholder that is
                not declared in ``parameters``.
        """
        undeclared = template_placeholders(data["alert_template"]) - set(data["parameters"])
        if undeclared:
            raise ValueError(
                f"{data['capability_key']}: template placeholders not in parameters: "
                f"{', '.join(sorted(undeclared))}"
            )

        capability = await self.get_by_key(data["capability_key"])
        if capability is None:
            capability = MonitoringCapability(**data)
            self.db.add(capability)
            logger.info("Capability created", capability_key=data["capability_key"])
        else:
            for field, value in data.items():
                setattr(capability, field, value)
            logger.info("Capability updated", capability_key=data["capability_key"])

        await self.db.flush()
        return capability
