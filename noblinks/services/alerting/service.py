"""
Alerting Service.

Business logic for creating, reading, transitioning and deleting
tenant-scoped alerts.
"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from noblinks.models.alert import Alert, AlertSeverity, AlertStatus
from noblinks.models.capability import MonitoringCapability
from noblinks.schemas.alerting import AlertCreate
from noblinks.services.alerting.errors import (
    AlertNotFoundError,
    CapabilityNotFoundError,
    DuplicateConflictError,
    ValidationError,
)
from noblinks.services.alerting.lifecycle import check_transition, parse_status
from noblinks.services.alerting.templates import expand_template, format_threshold, is_valid_window
from noblinks.services.capability_service import CapabilityService

logger = structlog.get_logger(__name__)

VALID_SEVERITIES = [s.value for s in AlertSeverity]


@dataclass
class ValidatedAlertRequest:
    """A create request that passed structural validation."""
    capability_key: str
    machine: str
    threshold: float
    window: str
    severity: Optional[str]
    name: Optional[str]
    description: Optional[str]
    force: bool


def validate_alert_request(data: AlertCreate) -> ValidatedAlertRequest:
    """
    Structural checks applied to every create request.

    Raises:
        ValidationError: naming the first offending field.
    """
    capability_key = (data.capability_key or "").strip()
    if not capability_key:
        raise ValidationError("capabilityKey", "capabilityKey is required")

    machine = (data.machine or "").strip()
    if not machine:
        raise ValidationError("machine", "machine is required")

    threshold = data.threshold
    # bool is an int subclass; reject it along with numeric strings
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise ValidationError("threshold", "threshold must be a number")
    try:
        threshold = float(threshold)
    except OverflowError:
        raise ValidationError("threshold", "threshold must be a finite number") from None
    if not math.isfinite(threshold):
        raise ValidationError("threshold", "threshold must be a finite number")

    if not is_valid_window(data.window):
        raise ValidationError("window", "window must be a duration like 5m, 1h, 30s")

    severity = data.severity
    if severity is not None and severity != "" and severity not in VALID_SEVERITIES:
        raise ValidationError(
            "severity",
            f"severity must be one of: {', '.join(VALID_SEVERITIES)}",
        )

    return ValidatedAlertRequest(
        capability_key=capability_key,
        machine=machine,
        threshold=threshold,
        window=data.window,
        severity=severity or None,
        name=(data.name or "").strip() or None,
        description=(data.description or "").strip() or None,
        force=data.force,
    )


class AlertService:
    """Service for managing one organization's alerts."""

    def __init__(self, db: AsyncSession, organization_id: uuid.UUID):
        self.db = db
        self.organization_id = organization_id
        self.capabilities = CapabilityService(db)

    # =========================================================================
    # Creation
    # =========================================================================

    async def find_duplicate(self, capability_id: uuid.UUID, machine: str) -> Optional[Alert]:
        """Find an existing alert for the same capability and machine in this organization."""
        result = await self.db.execute(
            select(Alert)
            .where(Alert.organization_id == self.organization_id)
            .where(Alert.capability_id == capability_id)
            .where(Alert.machine == machine)
            .order_by(Alert.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_alert(self, data: AlertCreate, user_id: Optional[uuid.UUID]) -> Alert:
        """
        Validate, check for duplicates and persist a new alert.

        Raises:
            ValidationError: structural problem in the request.
            CapabilityNotFoundError: the capability key is not in the catalog.
            DuplicateConflictError: an equivalent alert exists and force is not set.
        """
        request = validate_alert_request(data)

        capability = await self.capabilities.get_by_key(request.capability_key)
        if capability is None:
            raise CapabilityNotFoundError("Capability not found")

        # rollback() expires the capability; keep what is needed afterwards
        capability_id = capability.id
        capability_key = capability.capability_key

        existing = await self.find_duplicate(capability_id, request.machine)
        if existing is not None and not request.force:
            logger.info(
                "Duplicate alert refused",
                organization_id=str(self.organization_id),
                capability_key=capability_key,
                machine=request.machine,
                existing_alert_id=str(existing.id),
            )
            raise DuplicateConflictError(existing.id, existing.name)

        values = self._alert_values(capability, request, user_id)
        alert = Alert(**values, forced=existing is not None)

        self.db.add(alert)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent unforced create of the same alert
            await self.db.rollback()
            if not request.force:
                winner = await self.find_duplicate(capability_id, request.machine)
                if winner is None:
                    raise
                logger.info(
                    "Duplicate alert refused after concurrent create",
                    organization_id=str(self.organization_id),
                    capability_key=capability_key,
                    machine=request.machine,
                    existing_alert_id=str(winner.id),
                )
                raise DuplicateConflictError(winner.id, winner.name)

            alert = Alert(**values, forced=True)
            self.db.add(alert)
            await self.db.commit()

        await self.db.refresh(alert)

        logger.info(
            "Alert created",
            alert_id=str(alert.id),
            organization_id=str(self.organization_id),
            capability_key=capability_key,
            machine=alert.machine,
            forced=alert.forced,
        )
        return alert

    def _alert_values(
        self,
        capability: MonitoringCapability,
        request: ValidatedAlertRequest,
        user_id: Optional[uuid.UUID],
    ) -> Dict[str, Any]:
        """Column values for a new alert, resolved against the capability's defaults."""
        promql_query = expand_template(
            capability.alert_template,
            {"machine": request.machine, "threshold": request.threshold, "window": request.window},
        )
        name = request.name or f"{capability.name} - {request.machine}"
        description = request.description or (
            f"{capability.description} "
            f"(threshold: {format_threshold(request.threshold)}%, window: {request.window})"
        )

        return {
            "organization_id": self.organization_id,
            "name": name,
            "description": description,
            "capability_id": capability.id,
            "machine": request.machine,
            "threshold": request.threshold,
            "window": request.window,
            "severity": request.severity or capability.suggested_severity,
            "promql_query": promql_query,
            "status": AlertStatus.CONFIGURED.value,
            "created_by": user_id,
        }

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_alert(self, alert_id: uuid.UUID) -> Optional[Alert]:
        """Get an alert by ID within this organization."""
        result = await self.db.execute(
            select(Alert)
            .where(Alert.id == alert_id)
            .where(Alert.organization_id == self.organization_id)
        )
        return result.scalar_one_or_none()

    async def get_alert_with_capability(
        self, alert_id: uuid.UUID
    ) -> Tuple[Alert, Optional[MonitoringCapability]]:
        alert = await self.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError("Alert not found")
        capability = await self.capabilities.get_by_id(alert.capability_id)
        return alert, capability

    async def list_alerts(self, status: Optional[str] = None) -> List[Alert]:
        """List this organization's alerts, oldest first."""
        query = select(Alert).where(Alert.organization_id == self.organization_id)
        if status:
            query = query.where(Alert.status == status)
        query = query.order_by(Alert.created_at)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def update_status(self, alert_id: uuid.UUID, status: object) -> Alert:
        """
        Move an alert to another lifecycle state.

        Raises:
            ValidationError: unknown status or disallowed transition.
            AlertNotFoundError: no such alert in this organization.
        """
        target = parse_status(status)

        alert = await self.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError("Alert not found")

        check_transition(alert.status, target)

        previous = alert.status
        alert.status = target.value
        alert.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(alert)

        logger.info(
            "Alert status changed",
            alert_id=str(alert_id),
            from_status=previous,
            to_status=target.value,
        )
        return alert

    async def delete_alert(self, alert_id: uuid.UUID) -> None:
        """Delete an alert."""
        alert = await self.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError("Alert not found")

        await self.db.delete(alert)
        await self.db.commit()

        logger.info("Alert deleted", alert_id=str(alert_id))
