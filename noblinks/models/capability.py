"""
Monitoring capability catalog model.

A capability is a named, parameterized template for a monitorable
condition. The catalog is seeded out of band and read-only at request time.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from noblinks.core.database import Base


class MonitoringCapability(Base):
    """A catalog row describing one automatable alert."""
    __tablename__ = "monitoring_capabilities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    capability_key = Column(String(100), nullable=False, unique=True, index=True)

    # Human-facing metadata
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)

    # Underlying signal and query
    metric = Column(String(255), nullable=False)
    parameters = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)  # name -> string|number|duration
    alert_template = Column(Text, nullable=False)

    # Fallbacks used when a prompt omits them
    default_threshold = Column(Float, nullable=False)
    default_window = Column(String(20), nullable=False)
    suggested_severity = Column(String(20), nullable=False, default="warning")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def summary(self) -> dict:
        """Short form used to guide users after a failed match."""
        return {
            "key": self.capability_key,
            "name": self.name,
            "description": self.description,
            "category": self.category,
        }

    def __repr__(self) -> str:
        return f"<MonitoringCapability {self.capability_key}>"
