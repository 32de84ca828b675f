"""
Alert Assistant API.

Translates a free-text alert request into a reviewed-before-save alert
configuration.
"""

from typing import AsyncGenerator

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from noblinks.core.database import get_db
from noblinks.core.dependencies import CurrentUserDep
from noblinks.schemas.alerting import AnalyzeRequest, AnalyzeResponse
from noblinks.services.alerting.intent import IntentExtractor, OpenAIIntentExtractor
from noblinks.services.alerting.matcher import AlertMatcher
from noblinks.services.capability_service import CapabilityService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/chat", tags=["Alert Assistant"])


# =============================================================================
# Dependencies
# =============================================================================

async def get_intent_extractor() -> AsyncGenerator[IntentExtractor, None]:
    """Provider-backed extractor, closed when the request finishes."""
    extractor = OpenAIIntentExtractor.from_settings()
    try:
        yield extractor
    finally:
        await extractor.close()


async def get_alert_matcher(
    db: AsyncSession = Depends(get_db),
    extractor: IntentExtractor = Depends(get_intent_extractor),
) -> AlertMatcher:
    """Get AlertMatcher instance."""
    return AlertMatcher(CapabilityService(db), extractor)


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/create-alert", response_model=AnalyzeResponse)
async def analyze_alert_request(
    data: AnalyzeRequest,
    current_user: CurrentUserDep,
    matcher: AlertMatcher = Depends(get_alert_matcher),
):
    """
    Match a natural-language alert request to a monitoring capability.

    On success the response carries the capability, the extracted (or
    defaulted) parameters and a preview of the generated PromQL query. It
    is not persisted; the client reviews it and posts to `/alerts`.

    When nothing trustworthy matched, `matched` is false and
    `availableCapabilities` lists what can be monitored.
    """
    logger.info("Analyzing alert request", user_id=current_user.user_id, prompt_length=len(data.prompt))
    return await matcher.analyze(data.prompt)
