"""Role-based access control for API endpoints."""

from typing import Callable

import structlog
from fastapi import Depends

from hireos.middleware.error_handler import ForbiddenError
from hireos.services.tenant import TenantContext, get_tenant

logger = structlog.get_logger()


ROLES = ("admin", "ceo", "coo", "director", "projectManager", "hiringManager")

# May write evaluation criteria on candidates
PRIVILEGED_ROLES = frozenset({"admin", "ceo", "coo", "director"})


def is_privileged(role: str) -> bool:
    """Check whether a membership role may write evaluation criteria."""
    return role in PRIVILEGED_ROLES


def require_role(allowed_roles: list[str]) -> Callable:
    """
    Dependency that requires the caller's account role to be one of allowed_roles.

    Usage:
        @router.put("/integrations/{platform_id}")
        def upsert(tenant: TenantContext = Depends(require_role(["admin"]))):
            ...
    """
    def check_role(tenant: TenantContext = Depends(get_tenant)) -> TenantContext:
        if tenant.role in allowed_roles:
            logger.debug(
                "Role check passed",
                user=tenant.user_id,
                required=allowed_roles,
                user_role=tenant.role,
            )
            return tenant

        logger.warning(
            "Role check failed",
            user=tenant.user_id,
            required=allowed_roles,
            user_role=tenant.role,
        )
        raise ForbiddenError()

    return check_role


require_admin = require_role(["admin"])
