"""
Alerting API Endpoints.

REST API for creating, listing, transitioning and deleting alerts.
"""

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from noblinks.authz.dependencies import RequirePermission
from noblinks.core.database import get_db
from noblinks.core.dependencies import CurrentUserDep, OrganizationIdDep
from noblinks.schemas.alerting import (
    AlertCreate,
    AlertDeleteResponse,
    AlertDetailResponse,
    AlertEnvelope,
    AlertListResponse,
    AlertResponse,
    AlertStatusUpdate,
)
from noblinks.schemas.capability import CapabilityResponse
from noblinks.services.alerting.service import AlertService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/alerts", tags=["Alerting"])


# =============================================================================
# Dependencies
# =============================================================================

async def get_alert_service(
    organization_id: OrganizationIdDep,
    db: AsyncSession = Depends(get_db),
) -> AlertService:
    """Get AlertService instance scoped to the caller's organization."""
    return AlertService(db, organization_id)


def _user_uuid(user_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(user_id)
    except ValueError:
        return None


# =============================================================================
# Endpoints
# =============================================================================

@router.get(
    "",
    response_model=AlertListResponse,
    dependencies=[Depends(RequirePermission("alert.view"))],
)
async def list_alerts(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by lifecycle status"),
    service: AlertService = Depends(get_alert_service),
):
    """List the organization's alerts, oldest first."""
    alerts = await service.list_alerts(status=status_filter)
    return AlertListResponse(alerts=[AlertResponse.model_validate(a) for a in alerts])


@router.post(
    "",
    response_model=AlertEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RequirePermission("alert.create"))],
)
async def create_alert(
    data: AlertCreate,
    current_user: CurrentUserDep,
    service: AlertService = Depends(get_alert_service),
):
    """
    Create an alert from a capability and its parameters.

    The PromQL query is generated from the capability template. If an
    alert for the same capability and machine already exists the request
    is refused with 409 and the existing alert's id; resend with
    `force: true` to create it anyway.

    **Example:**
    ```json
    {
        "capabilityKey": "linux_memory_usage_high",
        "machine": "prod-server-1",
        "threshold": 80,
        "window": "5m"
    }
    ```
    """
    alert = await service.create_alert(data, _user_uuid(current_user.user_id))
    return AlertEnvelope(alert=AlertResponse.model_validate(alert))


@router.get(
    "/{alert_id}",
    response_model=AlertDetailResponse,
    dependencies=[Depends(RequirePermission("alert.view"))],
)
async def get_alert(
    alert_id: uuid.UUID,
    service: AlertService = Depends(get_alert_service),
):
    """Get an alert together with the capability it was built from."""
    alert, capability = await service.get_alert_with_capability(alert_id)
    return AlertDetailResponse(
        alert=AlertResponse.model_validate(alert),
        capability=CapabilityResponse.model_validate(capability) if capability else None,
    )


@router.patch(
    "/{alert_id}",
    response_model=AlertEnvelope,
    dependencies=[Depends(RequirePermission("alert.update"))],
)
async def update_alert_status(
    alert_id: uuid.UUID,
    data: AlertStatusUpdate,
    service: AlertService = Depends(get_alert_service),
):
    """
    Change an alert's lifecycle status.

    Allowed: configured → active → firing → resolved → configured.
    """
    alert = await service.update_status(alert_id, data.status)
    return AlertEnvelope(alert=AlertResponse.model_validate(alert))


@router.delete(
    "/{alert_id}",
    response_model=AlertDeleteResponse,
    dependencies=[Depends(RequirePermission("alert.delete"))],
)
async def delete_alert(
    alert_id: uuid.UUID,
    service: AlertService = Depends(get_alert_service),
):
    """Delete an alert."""
    await service.delete_alert(alert_id)
    return AlertDeleteResponse()
