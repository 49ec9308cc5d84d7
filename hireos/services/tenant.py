"""Tenant resolution: authenticated user -> account membership."""

from dataclasses import dataclass

import structlog
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.middleware.error_handler import BadRequestError, ForbiddenError, UnauthorizedError
from hireos.models import AccountMember, User

logger = structlog.get_logger()

ACCOUNT_HEADER = "X-Account-Id"


@dataclass(frozen=True)
class TenantContext:
    """The caller's identity within one account."""

    user: User
    account_id: int
    role: str

    @property
    def user_id(self) -> int:
        return self.user.id


def resolve_tenant(db: Session, user_id: int, requested_account_id: int | None = None) -> TenantContext:
    """
    Map a user to one of their account memberships.

    Args:
        db: Database session
        user_id: Authenticated user id
        requested_account_id: Account picked via X-Account-Id, if any

    Raises:
        UnauthorizedError: user no longer exists
        BadRequestError: user has no account membership
        ForbiddenError: requested account is not one of the user's
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnauthorizedError("User not found")

    memberships = (
        db.query(AccountMember)
        .filter(AccountMember.user_id == user_id)
        .order_by(AccountMember.id)
        .all()
    )
    if not memberships:
        logger.warning("Tenant not resolved", user_id=user_id)
        raise BadRequestError("Tenant not resolved: user has no account")

    if requested_account_id is None:
        membership = memberships[0]
    else:
        membership = next((m for m in memberships if m.account_id == requested_account_id), None)
        if membership is None:
            logger.warning(
                "Cross-account access denied",
                user_id=user_id,
                account_id=requested_account_id,
            )
            raise ForbiddenError("You are not a member of this account")

    structlog.contextvars.bind_contextvars(account_id=membership.account_id)
    return TenantContext(user=user, account_id=membership.account_id, role=membership.role)


def get_tenant(request: Request, db: Session = Depends(get_db)) -> TenantContext:
    """
    Dependency that resolves the caller's tenant.

    Usage:
        @router.get("/candidates")
        def list_candidates(tenant: TenantContext = Depends(get_tenant)):
            ...
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise UnauthorizedError()

    header = request.headers.get(ACCOUNT_HEADER)
    requested = None
    if header:
        if not header.isdigit():
            raise BadRequestError(f"Invalid {ACCOUNT_HEADER} header")
        requested = int(header)

    return resolve_tenant(db, user_id, requested)
