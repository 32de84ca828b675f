"""
Authorization dependencies for FastAPI.

Permissions are "<resource>.<action>" statements checked against the
caller's organization role with Casbin. The role comes from the session.
"""

from fastapi import HTTPException, status

from noblinks.authz.casbin_enforcer import enforce
from noblinks.core.dependencies import CurrentUserDep, OrganizationIdDep


def has_permission(role: str, permission_key: str) -> bool:
    """Check whether a role grants a "<resource>.<action>" permission."""
    resource, _, action = permission_key.partition(".")
    return enforce(role, resource, action)


class RequirePermission:
    """
    Dependency class for requiring a specific permission.

    Usage:
        @router.post("/alerts", dependencies=[Depends(RequirePermission("alert.create"))])
        async def create_alert():
            ...

    Also requires an active organization, since every permission is
    granted within one.
    """

    def __init__(self, permission_key: str):
        self.permission_key = permission_key

    async def __call__(
        self,
        current_user: CurrentUserDep,
        organization_id: OrganizationIdDep,
    ) -> None:
        """Check permission and raise 403 if not allowed."""
        if not has_permission(current_user.role, self.permission_key):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden",
            )
