"""
Alerting Schemas.

Pydantic schemas for the alert assistant (analyze) flow and the alert
create / status / read endpoints.
"""

import uuid
from datetime import datetime
from typing import Any, List, Literal, Optional, Union

from pydantic import Field

from noblinks.schemas.capability import CamelModel, CapabilityResponse, CapabilitySummary

MAX_PROMPT_LENGTH = 2000


# =============================================================================
# Intent extraction
# =============================================================================

class IntentParams(CamelModel):
    """Parameters as returned by the extractor; any of them may be missing."""
    machine: Optional[str] = None
    threshold: Optional[float] = None
    window: Optional[str] = None


class IntentResult(CamelModel):
    """
    Raw structured output of the intent extractor.

    Untrusted: nothing here is forwarded before the match validator has
    re-resolved the capability key against the catalog.
    """
    matched: bool
    capability_key: Optional[str] = None
    params: Optional[IntentParams] = None
    severity: Optional[str] = None
    alert_name: Optional[str] = None
    description: Optional[str] = None
    no_match_reason: Optional[str] = None


# =============================================================================
# Analyze
# =============================================================================

class AnalyzeRequest(CamelModel):
    """Free-text alert request."""
    prompt: str = Field(..., min_length=1, max_length=MAX_PROMPT_LENGTH)


class AlertParams(CamelModel):
    """Fully resolved template parameters."""
    machine: str
    threshold: float
    window: str


class MatchedAnalysis(CamelModel):
    """Analyze response when a capability matched."""
    matched: Literal[True] = True
    capability_key: str
    capability_name: str
    alert_template: str
    params: AlertParams
    severity: str
    alert_name: str
    description: str
    promql_query: str


class UnmatchedAnalysis(CamelModel):
    """Analyze response when no trustworthy match was produced."""
    matched: Literal[False] = False
    error_type: Literal["no_match", "incomplete", "invalid_capability"]
    no_match_reason: str
    available_capabilities: List[CapabilitySummary]


AnalyzeResponse = Union[MatchedAnalysis, UnmatchedAnalysis]


# =============================================================================
# Alert create / update
# =============================================================================

class AlertCreate(CamelModel):
    """
    Request to create an alert.

    Fields are deliberately loose so that type problems are reported by
    the creation validator with a field-specific message instead of being
    coerced.
    """
    capability_key: Optional[str] = None
    machine: Optional[str] = None
    threshold: Any = None
    window: Optional[Any] = None
    severity: Optional[Any] = None
    name: Optional[str] = None
    description: Optional[str] = None
    force: bool = False


class AlertStatusUpdate(CamelModel):
    """Request to move an alert to another lifecycle state."""
    status: Optional[str] = None


# =============================================================================
# Responses
# =============================================================================

class AlertResponse(CamelModel):
    """Persisted alert."""
    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    description: Optional[str]
    capability_id: uuid.UUID
    machine: str
    threshold: float
    window: str
    severity: str
    promql_query: str
    status: str
    forced: bool = False
    created_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime


class AlertEnvelope(CamelModel):
    alert: AlertResponse


class AlertListResponse(CamelModel):
    alerts: List[AlertResponse]


class AlertDetailResponse(CamelModel):
    alert: AlertResponse
    capability: Optional[CapabilityResponse]


class AlertDeleteResponse(CamelModel):
    success: bool = True
