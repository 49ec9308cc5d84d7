"""In-app notification endpoints.

A user sees their own notifications plus the account-wide ones (user_id
NULL) of their active account.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Query as SAQuery, Session

from hireos.config.database import get_db
from hireos.middleware.error_handler import NotFoundError
from hireos.models import InAppNotification
from hireos.schemas.notifications import MarkReadResponse, NotificationResponse, UnreadCountResponse
from hireos.services.tenant import TenantContext, get_tenant

logger = structlog.get_logger()
router = APIRouter()


def _visible(db: Session, tenant: TenantContext) -> SAQuery:
    return db.query(InAppNotification).filter(
        InAppNotification.account_id == tenant.account_id,
        or_(
            InAppNotification.user_id == tenant.user_id,
            InAppNotification.user_id.is_(None),
        ),
    )


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    db: Session = Depends(get_db),
    read: Optional[bool] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    tenant: TenantContext = Depends(get_tenant),
):
    """Newest first, optionally filtered on read state."""
    query = _visible(db, tenant)
    if read is not None:
        query = query.filter(InAppNotification.read == read)

    notifications = (
        query.order_by(InAppNotification.created_at.desc(), InAppNotification.id.desc())
        .limit(limit)
        .all()
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    count = _visible(db, tenant).filter(InAppNotification.read == False).count()  # noqa: E712
    return UnreadCountResponse(count=count)


@router.patch("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    updated = (
        _visible(db, tenant)
        .filter(InAppNotification.read == False)  # noqa: E712
        .update({InAppNotification.read: True}, synchronize_session=False)
    )
    db.commit()

    logger.info("Notifications marked read", user_id=tenant.user_id, count=updated)
    return MarkReadResponse(updated=updated)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    notification = _visible(db, tenant).filter(InAppNotification.id == notification_id).first()
    if not notification:
        raise NotFoundError("Notification", notification_id)

    notification.read = True
    db.commit()
    db.refresh(notification)
    return NotificationResponse.model_validate(notification)
