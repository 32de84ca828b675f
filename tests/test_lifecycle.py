"""
Tests for the alert lifecycle state machine.
"""
import pytest

from noblinks.models.alert import AlertStatus
from noblinks.services.alerting.errors import ValidationError
from noblinks.services.alerting.lifecycle import check_transition, parse_status


class TestParseStatus:

    @pytest.mark.parametrize("value", ["configured", "active", "firing", "resolved"])
    def test_known_statuses(self, value):
        assert parse_status(value) == AlertStatus(value)

    @pytest.mark.parametrize("value", ["paused", "ACTIVE", "", None, 1])
    def test_unknown_status_lists_valid_values(self, value):
        with pytest.raises(ValidationError) as exc:
            parse_status(value)
        assert exc.value.field == "status"
        assert "configured, active, firing, resolved" in exc.value.message


class TestTransitions:

    @pytest.mark.parametrize("current,target", [
        ("configured", AlertStatus.ACTIVE),
        ("active", AlertStatus.FIRING),
        ("firing", AlertStatus.RESOLVED),
        ("resolved", AlertStatus.CONFIGURED),
    ])
    def test_allowed(self, current, target):
        check_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        ("configured", AlertStatus.FIRING),
        ("configured", AlertStatus.CONFIGURED),
        ("active", AlertStatus.RESOLVED),
        ("firing", AlertStatus.ACTIVE),
        ("resolved", AlertStatus.FIRING),
    ])
    def test_rejected(self, current, target):
        with pytest.raises(ValidationError) as exc:
            check_transition(current, target)
        assert exc.value.status_code == 400
        assert f"from {current} to {target.value}" in exc.value.message

    def test_rejection_names_allowed_next_status(self):
        with pytest.raises(ValidationError) as exc:
            check_transition("configured", AlertStatus.RESOLVED)
        assert exc.value.message.endswith("allowed: active")
