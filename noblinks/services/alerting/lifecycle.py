"""
Alert lifecycle state machine.

    configured -> active -> firing -> resolved -> configured

``active -> firing`` is normally driven by an external evaluator; it is
accepted here so that evaluator can report through the same endpoint.
No state is terminal.
"""

from noblinks.models.alert import AlertStatus
from noblinks.services.alerting.errors import ValidationError

VALID_STATUSES = [s.value for s in AlertStatus]

ALLOWED_TRANSITIONS: dict[AlertStatus, frozenset[AlertStatus]] = {
    AlertStatus.CONFIGURED: frozenset({AlertStatus.ACTIVE}),
    AlertStatus.ACTIVE: frozenset({AlertStatus.FIRING}),
    AlertStatus.FIRING: frozenset({AlertStatus.RESOLVED}),
    AlertStatus.RESOLVED: frozenset({AlertStatus.CONFIGURED}),
}


def parse_status(value: object) -> AlertStatus:
    """Parse a requested status, rejecting anything outside the lifecycle."""
    if not isinstance(value, str) or value not in VALID_STATUSES:
        raise ValidationError(
            "status",
            f"status must be one of: {', '.join(VALID_STATUSES)}",
        )
    return AlertStatus(value)


def check_transition(current: str, target: AlertStatus) -> None:
    """Raise ValidationError unless ``current -> target`` is permitted."""
    allowed = ALLOWED_TRANSITIONS[AlertStatus(current)]
    if target not in allowed:
        allowed_values = ", ".join(sorted(s.value for s in allowed))
        raise ValidationError(
            "status",
            f"cannot change status from {current} to {target.value}; "
            f"allowed: {allowed_values}",
        )
