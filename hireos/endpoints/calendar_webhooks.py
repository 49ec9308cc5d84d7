"""Calendar provider webhooks (public; providers call these directly)."""

import json
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.context import AppContext, get_app_context
from hireos.middleware.error_handler import BadRequestError
from hireos.services.bookings import BookingService, parse_booking

logger = structlog.get_logger()
router = APIRouter()


async def _read_body(request: Request):
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Webhook body must be valid JSON")


async def _handle(
    request: Request,
    provider: Optional[str],
    user_id: Optional[int],
    db: Session,
    ctx: AppContext,
) -> dict:
    body = await _read_body(request)
    event = parse_booking(provider, body)
    logger.info(
        "Calendar webhook received",
        provider=event.provider,
        event_type=event.event_type,
        user_id=user_id,
    )
    return await BookingService(db, ctx).handle(event, user_id)


@router.post("/calendar")
async def calendar_webhook(
    request: Request,
    provider: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_app_context),
):
    """Receive a booking event; the provider is detected from the payload when not given."""
    return await _handle(request, provider, user_id, db, ctx)


@router.post("/calendar/{provider}")
async def provider_calendar_webhook(
    provider: str,
    request: Request,
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_app_context),
):
    return await _handle(request, provider, user_id, db, ctx)
