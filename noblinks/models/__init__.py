# Database models
from noblinks.models.capability import MonitoringCapability
from noblinks.models.alert import Alert, AlertSeverity, AlertStatus

__all__ = [
    "MonitoringCapability",
    "Alert",
    "AlertSeverity",
    "AlertStatus",
]
