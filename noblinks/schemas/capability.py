"""
Capability catalog schemas.
"""

import uuid
from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CapabilitySummary(CamelModel):
    """Catalog entry as shown to users after a failed match."""
    key: str
    name: str
    description: str
    category: str


class CapabilityResponse(CamelModel):
    """Full capability definition."""
    id: uuid.UUID
    capability_key: str
    name: str
    description: str
    category: str
    metric: str
    parameters: Dict[str, str]
    alert_template: str
    default_threshold: float
    default_window: str
    suggested_severity: str
    created_at: datetime


class CapabilityListResponse(CamelModel):
    capabilities: List[CapabilityResponse]
