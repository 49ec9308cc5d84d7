"""Notification fan-out: email and Slack effects, in-app rows, queued notifications."""

import json
from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy.orm import Session

from hireos.models import Candidate, EmailLog, InAppNotification, Interview, Job, NotificationQueueItem, User
from hireos.models.base import utcnow
from hireos.schemas.base import safe_json_loads
from hireos.services.effects import Effect, EffectReport
from hireos.services.email_templates import RenderedEmail
from hireos.services.encryption import decrypt_json
from hireos.services.platforms import get_usable_integration, integration_settings

logger = structlog.get_logger()

SLACK_EVENTS = ("interview_scheduled", "offer_accepted", "offer_sent", "job_posted", "new_application")

IN_APP_TYPES = (
    "interview_sent",
    "interview_scheduled",
    "offer_sent",
    "offer_accepted",
    "offer_rejected",
    "new_application",
    "candidate_status_changed",
)

EMAIL_EFFECT_PREFIX = "email:"


# =============================================================================
# Email
# =============================================================================

def email_effect(
    ctx,
    to: str,
    rendered: RenderedEmail,
    template_type: str,
    reply_to: Optional[str] = None,
) -> Effect:
    """Build an effect that sends a rendered email through SES."""
    async def send() -> dict[str, Any]:
        message_id = await ctx.email.send_email(
            to=to,
            subject=rendered.subject,
            html_body=rendered.body_html,
            reply_to=reply_to,
        )
        return {"messageId": message_id}

    return Effect(
        name=f"{EMAIL_EFFECT_PREFIX}{template_type}",
        run=send,
        meta={"to": to, "subject": rendered.subject, "templateType": template_type},
    )


def record_email_results(
    db: Session,
    account_id: int,
    candidate_id: Optional[int],
    report: EffectReport,
) -> None:
    """Write an email_log row for every email effect in the report."""
    for result in report.results:
        if not result.name.startswith(EMAIL_EFFECT_PREFIX):
            continue
        db.add(EmailLog(
            account_id=account_id,
            candidate_id=candidate_id,
            to_email=result.data.get("to", ""),
            subject=result.data.get("subject"),
            template_type=result.data.get("templateType"),
            status="sent" if result.ok else "failed",
            error=result.error,
            message_id=result.data.get("messageId"),
        ))


# =============================================================================
# Slack
# =============================================================================

def first_skill(candidate: Optional[Candidate]) -> str:
    skills = safe_json_loads(candidate.skills, None) if candidate else None
    if isinstance(skills, list) and skills:
        return str(skills[0])
    if isinstance(skills, str) and skills:
        return skills
    return "Candidate"


def format_datetime(value: Optional[datetime]) -> str:
    if not value:
        return "TBD"
    return value.strftime("%b %d, %Y, %I:%M %p").replace(" 0", " ")


def format_slack_message(
    event: str,
    candidate: Optional[Candidate] = None,
    job: Optional[Job] = None,
    interview: Optional[Interview] = None,
    user: Optional[User] = None,
) -> Optional[str]:
    """Message text for a Slack event, or None when required context is missing."""
    if event == "interview_scheduled" and candidate and job and interview:
        return (
            f"📅 Interview scheduled: {candidate.name} ({first_skill(candidate)}) "
            f"on {format_datetime(interview.scheduled_date)} for {job.title} position"
        )
    if event == "offer_accepted" and candidate and job:
        return f"🎉 {candidate.name} ({first_skill(candidate)}) has accepted the offer for {job.title} position!"
    if event == "offer_sent" and candidate and job and user:
        return (
            f"📨 Offer sent to {candidate.name} ({first_skill(candidate)}) "
            f"for {job.title} position by {user.full_name}"
        )
    if event == "job_posted" and job and user:
        return f"📢 Job posted: {job.title} ({job.type or 'Full-time'}) by {user.full_name}"
    if event == "new_application" and candidate and job:
        return f"📥 New application: {candidate.name} ({first_skill(candidate)}) for {job.title} position"
    return None


def slack_effect(ctx, db: Session, account_id: int, event: str, **context) -> Optional[Effect]:
    """
    Build a Slack effect for an account event.

    Returns None when Slack is not connected, the event is not enabled in the
    integration settings, or the message lacks context.
    """
    integration = get_usable_integration(db, account_id, "slack")
    if integration is None:
        return None
    if event not in integration_settings(integration).get("events", []):
        return None

    message = format_slack_message(event, **context)
    if not message:
        return None

    encrypted = integration.credentials

    async def post() -> None:
        credentials = decrypt_json(encrypted)
        await ctx.slack.post_message(credentials.get("webhookUrl", ""), message)

    return Effect(name=f"slack:{event}", run=post, meta={"event": event})


# =============================================================================
# In-app and queued notifications
# =============================================================================

def add_in_app_notification(
    db: Session,
    account_id: int,
    type: str,
    title: str,
    message: str,
    user_id: Optional[int] = None,
    link: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> InAppNotification:
    """Add an in-app notification row; the caller commits."""
    notification = InAppNotification(
        account_id=account_id,
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        link=link,
        metadata_json=json.dumps(metadata, default=str) if metadata else None,
    )
    db.add(notification)
    return notification


def queue_notification(
    db: Session,
    account_id: int,
    type: str,
    payload: dict[str, Any],
    process_after: Optional[datetime] = None,
) -> NotificationQueueItem:
    """Add a deferred notification for the external queue worker; the caller commits."""
    item = NotificationQueueItem(
        account_id=account_id,
        type=type,
        payload=json.dumps(payload, default=str),
        process_after=process_after or utcnow(),
        status="pending",
    )
    db.add(item)
    logger.info(
        "Notification queued",
        type=type,
        account_id=account_id,
        process_after=str(item.process_after),
    )
    return item
