"""
Tests for the alert assistant matcher: closed-world capability check,
parameter defaulting and the unmatched payload.
"""
import pytest

from noblinks.schemas.alerting import MatchedAnalysis, UnmatchedAnalysis
from noblinks.services.alerting.errors import ConfigurationError, RateLimitError
from noblinks.services.alerting.matcher import DEFAULT_NO_MATCH_REASON, AlertMatcher, resolve_match
from noblinks.services.capability_service import CapabilityService
from tests.conftest import StubExtractor, make_intent


class TestMatched:

    def test_memory_request_resolves_with_query_preview(self, catalog):
        result = resolve_match(make_intent(), list(catalog.values()))

        assert isinstance(result, MatchedAnalysis)
        assert result.capability_key == "linux_memory_usage_high"
        assert result.capability_name == "Linux Memory High"
        assert result.params.machine == "prod-server-1"
        assert result.params.threshold == 90
        assert result.params.window == "10m"
        assert result.severity == "critical"
        assert result.promql_query == (
            'avg_over_time(node_memory_usage_percent{instance="prod-server-1"}[10m]) > 90'
        )

    def test_missing_values_fall_back_to_capability_defaults(self, catalog):
        intent = make_intent(
            capabilityKey="linux_disk_usage_high",
            params={"machine": "web-2", "threshold": None, "window": None},
            severity=None,
        )
        result = resolve_match(intent, list(catalog.values()))

        assert result.params.threshold == 85
        assert result.params.window == "10m"
        assert result.severity == "critical"
        assert result.alert_name == "Linux Disk Usage High - web-2"
        assert result.description == catalog["linux_disk_usage_high"].description

    def test_zero_threshold_is_kept(self, catalog):
        intent = make_intent(params={"machine": "db-01", "threshold": 0, "window": "5m"})
        assert resolve_match(intent, list(catalog.values())).params.threshold == 0

    @pytest.mark.parametrize("threshold", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_threshold_replaced_by_default(self, catalog, threshold):
        intent = make_intent(params={"machine": "db-01", "threshold": threshold, "window": "5m"})
        result = resolve_match(intent, list(catalog.values()))

        assert result.params.threshold == 80
        assert result.promql_query.endswith("> 80")

    @pytest.mark.parametrize("window", ["5 minutes", "1.5h", ""])
    def test_malformed_window_replaced_by_default(self, catalog, window):
        intent = make_intent(params={"machine": "db-01", "threshold": 75, "window": window})
        result = resolve_match(intent, list(catalog.values()))
        assert result.params.window == "5m"

    def test_unknown_severity_replaced_by_suggestion(self, catalog):
        intent = make_intent(capabilityKey="linux_cpu_usage_high", severity="urgent")
        assert resolve_match(intent, list(catalog.values())).severity == "warning"

    def test_model_name_and_description_are_kept(self, catalog):
        intent = make_intent(alertName="Prod memory", description="Memory pressure on prod")
        result = resolve_match(intent, list(catalog.values()))
        assert result.alert_name == "Prod memory"
        assert result.description == "Memory pressure on prod"

    def test_machine_is_trimmed(self, catalog):
        intent = make_intent(params={"machine": "  prod-server-1 ", "threshold": 90, "window": "10m"})
        assert resolve_match(intent, list(catalog.values())).params.machine == "prod-server-1"


class TestUnmatched:

    def test_no_match_lists_catalog(self, catalog):
        intent = make_intent(matched=False, capabilityKey=None, params=None,
                             noMatchReason="Kafka consumer lag is not monitored.")
        result = resolve_match(intent, list(catalog.values()))

        assert isinstance(result, UnmatchedAnalysis)
        assert result.error_type == "no_match"
        assert result.no_match_reason == "Kafka consumer lag is not monitored."
        assert {c.key for c in result.available_capabilities} == set(catalog)

    def test_no_match_without_reason_gets_default(self, catalog):
        intent = make_intent(matched=False, capabilityKey=None, params=None)
        assert resolve_match(intent, list(catalog.values())).no_match_reason == DEFAULT_NO_MATCH_REASON

    def test_invented_capability_is_rejected(self, catalog):
        intent = make_intent(capabilityKey="linux_swap_usage_high")
        result = resolve_match(intent, list(catalog.values()))

        assert isinstance(result, UnmatchedAnalysis)
        assert result.error_type == "invalid_capability"
        assert result.no_match_reason == (
            'AI selected an invalid capability "linux_swap_usage_high". Please try again.'
        )

    @pytest.mark.parametrize("overrides", [
        {"capabilityKey": None},
        {"params": None},
        {"params": {"machine": "   ", "threshold": 90, "window": "5m"}},
        {"params": {"machine": None, "threshold": 90, "window": "5m"}},
    ])
    def test_incomplete_match(self, catalog, overrides):
        result = resolve_match(make_intent(**overrides), list(catalog.values()))
        assert isinstance(result, UnmatchedAnalysis)
        assert result.error_type == "incomplete"


class TestAlertMatcher:

    async def test_offers_whole_catalog_to_extractor(self, db_session, catalog):
        extractor = StubExtractor(result=make_intent())
        matcher = AlertMatcher(CapabilityService(db_session), extractor)

        result = await matcher.analyze("memory on prod-server-1 above 90% for 10 minutes")

        assert result.matched is True
        prompt, keys = extractor.calls[0]
        assert prompt == "memory on prod-server-1 above 90% for 10 minutes"
        assert sorted(keys) == sorted(catalog)

    async def test_empty_catalog_is_configuration_error(self, db_session):
        extractor = StubExtractor(result=make_intent())
        matcher = AlertMatcher(CapabilityService(db_session), extractor)

        with pytest.raises(ConfigurationError, match="No monitoring capabilities configured"):
            await matcher.analyze("memory on prod-server-1")
        assert extractor.calls == []

    async def test_provider_errors_propagate(self, db_session, catalog):
        extractor = StubExtractor(error=RateLimitError("slow down"))
        matcher = AlertMatcher(CapabilityService(db_session), extractor)

        with pytest.raises(RateLimitError):
            await matcher.analyze("memory on prod-server-1")
