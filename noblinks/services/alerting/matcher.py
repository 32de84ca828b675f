"""
Alert assistant matcher.

Runs a prompt through the intent extractor and then treats the result as
untrusted input: the chosen capability key is re-resolved against the
catalog and every omitted or malformed parameter is filled from the
capability's defaults before a preview query is expanded.
"""

import math
from typing import Sequence

import structlog

from noblinks.models.alert import AlertSeverity
from noblinks.models.capability import MonitoringCapability
from noblinks.schemas.alerting import (
    AlertParams,
    AnalyzeResponse,
    IntentResult,
    MatchedAnalysis,
    UnmatchedAnalysis,
)
from noblinks.schemas.capability import CapabilitySummary
from noblinks.services.alerting.errors import (
    ConfigurationError,
    IncompleteMatchError,
    InvalidCapabilityError,
    MatchError,
    NoMatchError,
)
from noblinks.services.alerting.intent import IntentExtractor
from noblinks.services.alerting.templates import expand_template, is_valid_window
from noblinks.services.capability_service import CapabilityService

logger = structlog.get_logger(__name__)

DEFAULT_NO_MATCH_REASON = "Could not match your request to any available capability."

SEVERITY_VALUES = {s.value for s in AlertSeverity}


def _resolve(result: IntentResult, catalog: Sequence[MonitoringCapability]) -> MatchedAnalysis:
    """
    Validate an extractor result against the catalog.

    Raises:
        NoMatchError: the extractor found no fitting capability.
        IncompleteMatchError: matched, but key or parameters are missing.
        InvalidCapabilityError: matched a key that is not in the catalog.
    """
    if not result.matched:
        raise NoMatchError(result.no_match_reason or DEFAULT_NO_MATCH_REASON)

    if not result.capability_key or result.params is None:
        raise IncompleteMatchError("AI returned an incomplete response. Please try again.")

    machine = (result.params.machine or "").strip()
    if not machine:
        raise IncompleteMatchError("AI could not determine which machine to monitor. Please name it.")

    by_key = {c.capability_key: c for c in catalog}
    capability = by_key.get(result.capability_key)
    if capability is None:
        raise InvalidCapabilityError(
            f'AI selected an invalid capability "{result.capability_key}". Please try again.',
            capability_key=result.capability_key,
        )

    threshold = result.params.threshold
    if threshold is None or not math.isfinite(threshold):
        threshold = capability.default_threshold

    window = result.params.window
    if not is_valid_window(window):
        if window is not None:
            logger.info(
                "Extractor window rejected, using default",
                capability_key=capability.capability_key,
                window=window,
            )
        window = capability.default_window

    severity = result.severity if result.severity in SEVERITY_VALUES else capability.suggested_severity

    params = AlertParams(machine=machine, threshold=threshold, window=window)

    return MatchedAnalysis(
        capability_key=capability.capability_key,
        capability_name=capability.name,
        alert_template=capability.alert_template,
        params=params,
        severity=severity,
        alert_name=(result.alert_name or "").strip() or f"{capability.name} - {machine}",
        description=(result.description or "").strip() or capability.description,
        promql_query=expand_template(capability.alert_template, params.model_dump()),
    )


def resolve_match(
    result: IntentResult,
    catalog: Sequence[MonitoringCapability],
) -> AnalyzeResponse:
    """
    Turn a raw extractor result into an analyze response.

    Non-matches of every kind come back as ``matched: false`` with the
    catalog summary attached so the user can rephrase; each kind is
    logged separately to track extractor quality.
    """
    try:
        return _resolve(result, catalog)
    except MatchError as e:
        log_event = {
            "no_match": "Alert request matched no capability",
            "incomplete": "Extractor returned incomplete match",
            "invalid_capability": "Extractor returned unknown capability",
        }[e.code]
        log = logger.warning if e.code != "no_match" else logger.info
        log(
            log_event,
            error_type=e.code,
            capability_key=getattr(e, "capability_key", result.capability_key),
        )

        return UnmatchedAnalysis(
            error_type=e.code,
            no_match_reason=e.message,
            available_capabilities=[
                CapabilitySummary.model_validate(c.summary()) for c in catalog
            ],
        )


class AlertMatcher:
    """Orchestrates catalog read, intent extraction and validation."""

    def __init__(self, capabilities: CapabilityService, extractor: IntentExtractor):
        self.capabilities = capabilities
        self.extractor = extractor

    async def analyze(self, prompt: str) -> AnalyzeResponse:
        """
        Match a free-text request to a capability.

        Raises:
            ConfigurationError: when the catalog is empty.
            ProviderError subclasses from the extractor.
        """
        catalog = await self.capabilities.list_capabilities()
        if not catalog:
            raise ConfigurationError("No monitoring capabilities configured")

        result = await self.extractor.extract(prompt, catalog)
        return resolve_match(result, catalog)
