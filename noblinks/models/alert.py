"""
Alert model.

Tenant-scoped alert configurations produced by the alert assistant or
the direct create API.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, String, Text, Uuid, text

from noblinks.core.database import Base


class AlertSeverity(str, Enum):
    """Alert severity levels."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class AlertStatus(str, Enum):
    """Alert lifecycle states."""
    CONFIGURED = "configured"
    ACTIVE = "active"
    FIRING = "firing"
    RESOLVED = "resolved"


class Alert(Base):
    """Alert configuration."""
    __tablename__ = "alerts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, nullable=False, index=True)

    # Identification
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Configuration
    capability_id = Column(
        Uuid,
        ForeignKey("monitoring_capabilities.id", ondelete="RESTRICT"),
        nullable=False,
    )
    machine = Column(String(255), nullable=False)
    threshold = Column(Float, nullable=False)
    window = Column(String(20), nullable=False)
    severity = Column(String(20), nullable=False, default=AlertSeverity.WARNING.value)
    promql_query = Column(Text, nullable=False)

    # Lifecycle
    status = Column(String(20), nullable=False, default=AlertStatus.CONFIGURED.value)

    # Created with force=true while an equivalent alert already existed
    forced = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    # Metadata
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_alerts_org_status", "organization_id", "status"),
        # Only one unforced alert per (org, capability, machine)
        Index(
            "uq_alerts_org_capability_machine_unforced",
            "organization_id", "capability_id", "machine",
            unique=True,
            postgresql_where=text("forced = false"),
            sqlite_where=text("forced = 0"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Alert {self.id} {self.name!r} {self.status}>"
