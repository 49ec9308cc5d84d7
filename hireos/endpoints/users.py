"""Current user profile endpoints."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.schemas.users import UserResponse, UserUpdate
from hireos.services.tenant import TenantContext, get_tenant

logger = structlog.get_logger()
router = APIRouter()


def _to_response(tenant: TenantContext) -> UserResponse:
    user = tenant.user
    return UserResponse(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        calendar_link=user.calendar_link,
        calendar_provider=user.calendar_provider,
        account_id=tenant.account_id,
        role=tenant.role,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(tenant: TenantContext = Depends(get_tenant)):
    """Get the current user in their active account."""
    return _to_response(tenant)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """Update profile fields, including the scheduling link used in interview invites."""
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if field == "full_name" and not value:
            continue
        if field == "calendar_link" and value is not None:
            value = value.strip() or None
        setattr(tenant.user, field, value)

    db.commit()
    db.refresh(tenant.user)

    logger.info("User profile updated", user_id=tenant.user_id, fields=sorted(changes))
    return _to_response(tenant)
