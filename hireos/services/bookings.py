"""Calendar booking webhooks (Calendly, Cal.com, Google Calendar).

Provider payloads are normalized into a BookingEvent, then applied to the
matching candidate's active interview. Unknown candidates and unhandled event
types are acknowledged without changes.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy import func
from sqlalchemy.orm import Session

from hireos.context import AppContext
from hireos.middleware.error_handler import BadRequestError
from hireos.models import AccountMember, Candidate, Job
from hireos.models.candidates import STATUS_INTERVIEW_SCHEDULED
from hireos.services.effects import Effect
from hireos.services.email_validator import is_likely_invalid_email
from hireos.services.encryption import decrypt_json
from hireos.services.interview_bookkeeping import (
    cancel_active_interviews,
    reschedule_active_interview,
    upsert_booked_interview,
)
from hireos.services.lifecycle import (
    apply_status,
    commit_or_conflict,
    complete_operation,
    workflow_effect,
)
from hireos.services.notifications import add_in_app_notification, slack_effect
from hireos.services.platforms import get_usable_integration, integration_settings

logger = structlog.get_logger()

PROVIDERS = ("calendly", "cal.com", "google")

BOOKED = "booked"
CANCELLED = "cancelled"
RESCHEDULED = "rescheduled"

CALENDLY_EVENTS = {
    "invitee.created": BOOKED,
    "invitee.canceled": CANCELLED,
    "invitee.updated": RESCHEDULED,
}

CALCOM_EVENTS = {
    "BOOKING_CREATED": BOOKED,
    "BOOKING_CANCELLED": CANCELLED,
    "BOOKING_RESCHEDULED": RESCHEDULED,
}


@dataclass(frozen=True)
class BookingEvent:
    """A provider-neutral booking notification."""

    provider: str
    event_type: str
    action: Optional[str]
    email: Optional[str]
    start_time: Optional[datetime] = None


def parse_datetime(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into naive UTC."""
    if not isinstance(value, str) or not value:
        raise BadRequestError("Booking payload is missing a start time")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise BadRequestError(f"Invalid booking start time: {value}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def detect_provider(body: dict[str, Any]) -> Optional[str]:
    """Guess the provider from the payload shape."""
    payload = body.get("payload")
    if "event" in body and isinstance(payload, dict) and "invitee" in payload:
        return "calendly"
    if "triggerEvent" in body and isinstance(payload, dict) and "attendee" in payload:
        return "cal.com"
    if body.get("kind") == "calendar#event" and "attendees" in body:
        return "google"
    return None


def _calendly(body: dict[str, Any]) -> BookingEvent:
    event_type = body.get("event") or ""
    payload = body.get("payload")
    if not isinstance(payload, dict):
        raise BadRequestError("Calendly payload is missing 'payload'")

    action = CALENDLY_EVENTS.get(event_type)
    invitee = payload.get("invitee") if isinstance(payload.get("invitee"), dict) else {}
    email = payload.get("email") or invitee.get("email")

    start_time = None
    if action in (BOOKED, RESCHEDULED):
        scheduled = payload.get("scheduled_event") or {}
        start_time = parse_datetime(scheduled.get("start_time"))
    return BookingEvent("calendly", event_type, action, email, start_time)


def _calcom(body: dict[str, Any]) -> BookingEvent:
    event_type = body.get("triggerEvent") or ""
    payload = body.get("payload")
    if not isinstance(payload, dict):
        raise BadRequestError("Cal.com payload is missing 'payload'")

    action = CALCOM_EVENTS.get(event_type)
    attendee = payload.get("attendee") if isinstance(payload.get("attendee"), dict) else {}
    if not attendee and isinstance(payload.get("attendees"), list) and payload["attendees"]:
        attendee = payload["attendees"][0] or {}

    start_time = None
    if action in (BOOKED, RESCHEDULED):
        start_time = parse_datetime(payload.get("startTime"))
    return BookingEvent("cal.com", event_type, action, attendee.get("email"), start_time)


def _google(body: dict[str, Any]) -> BookingEvent:
    attendees = body.get("attendees")
    if not isinstance(attendees, list):
        raise BadRequestError("Google Calendar payload is missing 'attendees'")

    email = None
    for attendee in attendees:
        if not isinstance(attendee, dict):
            continue
        if attendee.get("organizer") or attendee.get("self"):
            continue
        candidate_email = attendee.get("email")
        if candidate_email and not is_likely_invalid_email(candidate_email):
            email = candidate_email
            break

    if body.get("status") == "cancelled":
        return BookingEvent("google", "cancelled", CANCELLED, email)

    start = body.get("start") if isinstance(body.get("start"), dict) else {}
    return BookingEvent("google", body.get("status") or "confirmed", BOOKED, email, parse_datetime(start.get("dateTime")))


PARSERS = {
    "calendly": _calendly,
    "cal.com": _calcom,
    "google": _google,
}


def parse_booking(provider: Optional[str], body: Any) -> BookingEvent:
    """
    Normalize a webhook body.

    Raises:
        BadRequestError: unknown provider or malformed payload
    """
    if not isinstance(body, dict):
        raise BadRequestError("Booking payload must be a JSON object")

    provider = (provider or detect_provider(body) or "").lower()
    if provider == "calcom":
        provider = "cal.com"
    parser = PARSERS.get(provider)
    if parser is None:
        raise BadRequestError(
            "Could not determine calendar provider",
            details={"supported": list(PROVIDERS)},
        )
    return parser(body)


class BookingService:
    """Applies booking events to interviews and candidate status."""

    def __init__(self, db: Session, ctx: AppContext):
        self.db = db
        self.ctx = ctx

    def resolve_account_id(self, email: str, user_id: Optional[int]) -> Optional[int]:
        """
        The account the booking belongs to.

        With userId: the account of the first candidate with this email among
        the user's accounts, else the user's first account. Without: the
        account of the first candidate with this email anywhere.
        """
        if user_id is not None:
            account_ids = [
                row.account_id
                for row in self.db.query(AccountMember.account_id)
                .filter(AccountMember.user_id == user_id)
                .order_by(AccountMember.id)
                .all()
            ]
            if account_ids:
                candidate = (
                    self.db.query(Candidate.account_id)
                    .filter(
                        Candidate.account_id.in_(account_ids),
                        func.lower(Candidate.email) == email.lower(),
                    )
                    .order_by(Candidate.id)
                    .first()
                )
                return candidate.account_id if candidate else account_ids[0]

        candidate = (
            self.db.query(Candidate)
            .filter(func.lower(Candidate.email) == email.lower())
            .order_by(Candidate.id)
            .first()
        )
        return candidate.account_id if candidate else None

    def _find_candidate(self, account_id: int, email: str) -> Optional[Candidate]:
        return (
            self.db.query(Candidate)
            .filter(
                Candidate.account_id == account_id,
                func.lower(Candidate.email) == email.lower(),
            )
            .order_by(Candidate.id)
            .with_for_update()
            .first()
        )

    def _interviewer_for(self, account_id: int, user_id: Optional[int]) -> Optional[int]:
        if user_id is None:
            return None
        member = (
            self.db.query(AccountMember.id)
            .filter(AccountMember.account_id == account_id, AccountMember.user_id == user_id)
            .first()
        )
        return user_id if member else None

    async def handle(self, event: BookingEvent, user_id: Optional[int] = None) -> dict[str, Any]:
        """Route an event; returns the webhook acknowledgement body."""
        log = logger.bind(provider=event.provider, event_type=event.event_type)

        if event.action is None:
            log.info("Booking event ignored")
            return {"success": True, "processed": False, "message": f"Ignored {event.provider} event '{event.event_type}'"}
        if not event.email:
            log.info("Booking event has no candidate email")
            return {"success": True, "processed": False, "message": "No candidate email in booking"}

        account_id = self.resolve_account_id(event.email, user_id)
        if account_id is None:
            log.info("Booking ignored, no account for candidate email", email=event.email)
            return {"success": True, "processed": False, "message": "No matching candidate"}

        interviewer_id = self._interviewer_for(account_id, user_id)
        if event.action == BOOKED:
            processed = await self.update_interview_from_booking(
                event.email, event.start_time, event.provider, interviewer_id, account_id
            )
        elif event.action == CANCELLED:
            processed = await self.cancel_from_booking(event.email, event.provider, account_id)
        else:
            processed = await self.reschedule_from_booking(
                event.email, event.start_time, event.provider, interviewer_id, account_id
            )

        if not processed:
            return {"success": True, "processed": False, "message": "No matching candidate"}
        return {"success": True, "processed": True, "message": f"Interview {event.action}"}

    async def update_interview_from_booking(
        self,
        email: str,
        scheduled_date: datetime,
        provider: str,
        user_id: Optional[int],
        account_id: int,
    ) -> bool:
        """
        Record a booked interview for the candidate with this email.

        Returns False when no candidate in the account matches.
        """
        candidate = self._find_candidate(account_id, email)
        if candidate is None:
            logger.info("Booking ignored, no matching candidate", account_id=account_id, provider=provider)
            return False

        interview, created = upsert_booked_interview(
            self.db, account_id, candidate, scheduled_date, provider, interviewer_id=user_id
        )
        previous = candidate.status
        if candidate.status != STATUS_INTERVIEW_SCHEDULED:
            apply_status(self.db, candidate, STATUS_INTERVIEW_SCHEDULED)
        candidate.last_interview_date = scheduled_date

        add_in_app_notification(
            self.db,
            account_id,
            "interview_scheduled",
            "Interview scheduled",
            f"{candidate.name} booked an interview via {provider}",
            user_id=user_id,
            link=f"/candidates/{candidate.id}",
            metadata={"candidateId": candidate.id, "interviewId": interview.id, "provider": provider},
        )
        commit_or_conflict(self.db)
        logger.info(
            "Interview booked",
            candidate_id=candidate.id,
            interview_id=interview.id,
            created=created,
            provider=provider,
        )

        job = self.db.get(Job, candidate.job_id) if candidate.job_id else None
        effects = [
            slack_effect(self.ctx, self.db, account_id, "interview_scheduled", candidate=candidate, job=job, interview=interview),
            self._mirror_effect(account_id, candidate, job, scheduled_date, provider),
            *self.ctx.crm.effects_for(self.db, candidate, job),
            workflow_effect(self.ctx, candidate, previous, user_id),
        ]
        entries = [("interview_booked", "interview", interview.id, {
            "candidateId": candidate.id,
            "provider": provider,
            "scheduledDate": scheduled_date.isoformat(),
            "created": created,
        })]
        if previous != candidate.status:
            entries.append(("status_changed", "candidate", candidate.id, {
                "previousStatus": previous,
                "newStatus": candidate.status,
            }))
        await complete_operation(self.db, candidate, user_id, effects, entries)
        return True

    async def cancel_from_booking(self, email: str, provider: str, account_id: int) -> bool:
        """Cancel the candidate's active interviews; candidate status is left alone."""
        candidate = self._find_candidate(account_id, email)
        if candidate is None:
            return False

        cancelled = cancel_active_interviews(
            self.db, account_id, candidate.id, f"booking cancelled via {provider}"
        )
        self.db.commit()

        await complete_operation(self.db, candidate, None, [], [("interview_cancelled", "candidate", candidate.id, {
            "provider": provider,
            "interviewIds": [i.id for i in cancelled],
        })])
        return True

    async def reschedule_from_booking(
        self,
        email: str,
        scheduled_date: datetime,
        provider: str,
        user_id: Optional[int],
        account_id: int,
    ) -> bool:
        """Move the active interview; with none active this is treated as a new booking."""
        candidate = self._find_candidate(account_id, email)
        if candidate is None:
            return False

        interview = reschedule_active_interview(
            self.db, account_id, candidate, scheduled_date, provider, interviewer_id=user_id
        )
        if interview is None:
            self.db.rollback()
            return await self.update_interview_from_booking(email, scheduled_date, provider, user_id, account_id)

        candidate.last_interview_date = scheduled_date
        self.db.commit()
        logger.info("Interview rescheduled", candidate_id=candidate.id, interview_id=interview.id, provider=provider)

        job = self.db.get(Job, candidate.job_id) if candidate.job_id else None
        effects = [
            slack_effect(self.ctx, self.db, account_id, "interview_scheduled", candidate=candidate, job=job, interview=interview),
        ]
        await complete_operation(self.db, candidate, user_id, effects, [("interview_rescheduled", "interview", interview.id, {
            "candidateId": candidate.id,
            "provider": provider,
            "scheduledDate": scheduled_date.isoformat(),
        })])
        return True

    def _mirror_effect(
        self,
        account_id: int,
        candidate: Candidate,
        job: Optional[Job],
        scheduled_date: datetime,
        provider: str,
    ) -> Optional[Effect]:
        """Mirror the booking into Google Calendar when cross-sync is on."""
        if provider == "google":
            return None
        integration = get_usable_integration(self.db, account_id, "google-calendar")
        if integration is None or not integration_settings(integration).get("crossSync"):
            return None

        encrypted = integration.credentials
        summary = f"Interview: {candidate.name}" + (f" ({job.title})" if job else "")
        attendee = candidate.email

        async def mirror() -> dict[str, Any]:
            event_id = await self.ctx.calendar.create_event(
                decrypt_json(encrypted),
                summary,
                scheduled_date,
                attendee,
                description=f"Booked via {provider}",
            )
            return {"eventId": event_id}

        return Effect(name="calendar:google-mirror", run=mirror, meta={"provider": provider})
