"""
Capability catalog API.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from noblinks.authz.dependencies import RequirePermission
from noblinks.core.database import get_db
from noblinks.schemas.capability import CapabilityListResponse, CapabilityResponse
from noblinks.services.capability_service import CapabilityService

router = APIRouter(prefix="/capabilities", tags=["Capabilities"])


@router.get(
    "",
    response_model=CapabilityListResponse,
    dependencies=[Depends(RequirePermission("capability.view"))],
)
async def list_capabilities(
    category: Optional[str] = Query(None, description="Filter by category, e.g. linux"),
    db: AsyncSession = Depends(get_db),
):
    """List the monitoring capabilities alerts can be built from."""
    capabilities = await CapabilityService(db).list_capabilities(category)
    return CapabilityListResponse(
        capabilities=[CapabilityResponse.model_validate(c) for c in capabilities]
    )
