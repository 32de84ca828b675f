"""
Default monitoring capability catalog.

Upserted by ``scripts/seed_capabilities.py``; safe to run repeatedly.
"""

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from noblinks.services.capability_service import CapabilityService

LINUX_PARAMETERS = {
    "machine": "string",
    "threshold": "number",
    "window": "duration",
}

DEFAULT_CAPABILITIES: List[Dict[str, Any]] = [
    {
        "capability_key": "linux_memory_usage_high",
        "name": "Linux Memory High",
        "description": "Alert when average memory usage exceeds threshold on a Linux machine",
        "category": "linux",
        "metric": "node_memory_usage_percent",
        "parameters": LINUX_PARAMETERS,
        "alert_template": 'avg_over_time(node_memory_usage_percent{instance="$machine"}[$window]) > $threshold',
        "default_threshold": 80,
        "default_window": "5m",
        "suggested_severity": "warning",
    },
    {
        "capability_key": "linux_cpu_usage_high",
        "name": "Linux CPU High",
        "description": "Alert when average CPU usage exceeds threshold on a Linux machine",
        "category": "linux",
        "metric": "node_cpu_usage_percent",
        "parameters": LINUX_PARAMETERS,
        "alert_template": 'avg_over_time(node_cpu_usage_percent{instance="$machine"}[$window]) > $threshold',
        "default_threshold": 80,
        "default_window": "5m",
        "suggested_severity": "warning",
    },
    {
        "capability_key": "linux_disk_usage_high",
        "name": "Linux Disk Usage High",
        "description": "Alert when filesystem usage exceeds threshold on a Linux machine root mountpoint",
        "category": "linux",
        "metric": "node_filesystem_usage_percent",
        "parameters": LINUX_PARAMETERS,
        "alert_template": (
            'avg_over_time(node_filesystem_usage_percent{instance="$machine", mountpoint="/"}[$window])'
            " > $threshold"
        ),
        "default_threshold": 85,
        "default_window": "10m",
        "suggested_severity": "critical",
    },
]


async def seed_capabilities(session: AsyncSession) -> List[str]:
    """Upsert the default catalog and return the seeded keys."""
    service = CapabilityService(session)
    keys = []
    for data in DEFAULT_CAPABILITIES:
        capability = await service.upsert({**data, "parameters": dict(data["parameters"])})
        keys.append(capability.capability_key)
    return keys
