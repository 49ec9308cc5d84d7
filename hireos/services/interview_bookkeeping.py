"""Active-interview bookkeeping shared by invites, bookings and status changes.

At most one active (scheduled/pending) interview exists per candidate. Callers
lock the candidate row first (lock_candidate) and then find-or-update here;
the partial unique index on interviews backs this up at the database level.
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from hireos.models import ACTIVE_INTERVIEW_STATUSES, Candidate, Interview
from hireos.models.base import utcnow

logger = structlog.get_logger()


def stamp() -> str:
    return utcnow().strftime("%Y-%m-%d %H:%M UTC")


def lock_candidate(db: Session, candidate_id: int, account_id: int) -> Optional[Candidate]:
    """Load a candidate with a row lock held until the transaction ends."""
    return (
        db.query(Candidate)
        .filter(Candidate.id == candidate_id, Candidate.account_id == account_id)
        .with_for_update()
        .first()
    )


def find_active_interview(
    db: Session,
    account_id: int,
    candidate_id: int,
    interviewer_id: Optional[int] = None,
) -> Optional[Interview]:
    """The candidate's active interview, preferring one owned by interviewer_id."""
    active = (
        db.query(Interview)
        .filter(
            Interview.account_id == account_id,
            Interview.candidate_id == candidate_id,
            Interview.status.in_(ACTIVE_INTERVIEW_STATUSES),
        )
        .order_by(Interview.id.desc())
        .all()
    )
    if interviewer_id is not None:
        for interview in active:
            if interview.interviewer_id == interviewer_id:
                return interview
    return active[0] if active else None


def ensure_invite_interview(
    db: Session,
    account_id: int,
    candidate: Candidate,
    interviewer_id: Optional[int],
) -> tuple[Interview, bool]:
    """
    Find-or-create the interview that tracks an invitation.

    Returns (interview, created). An existing active interview is moved to
    scheduled with a note instead of inserting a second row.
    """
    interview = find_active_interview(db, account_id, candidate.id)
    if interview is not None:
        interview.status = "scheduled"
        if interview.interviewer_id is None:
            interview.interviewer_id = interviewer_id
        interview.append_note(f"[{stamp()}] Interview invitation re-sent")
        return interview, False

    interview = Interview(
        account_id=account_id,
        candidate_id=candidate.id,
        interviewer_id=interviewer_id,
        type="video",
        status="scheduled",
        scheduled_date=None,
        notes=f"[{stamp()}] Interview invitation sent, awaiting booking",
    )
    db.add(interview)
    db.flush()
    logger.info("Interview created from invite", interview_id=interview.id, candidate_id=candidate.id)
    return interview, True


def upsert_booked_interview(
    db: Session,
    account_id: int,
    candidate: Candidate,
    scheduled_date: datetime,
    provider: str,
    interviewer_id: Optional[int] = None,
) -> tuple[Interview, bool]:
    """Apply a calendar booking to the active interview, creating one if needed."""
    interview = find_active_interview(db, account_id, candidate.id, interviewer_id)
    if interview is not None:
        interview.scheduled_date = scheduled_date
        interview.status = "scheduled"
        if interview.interviewer_id is None:
            interview.interviewer_id = interviewer_id
        interview.append_note(f"[{stamp()}] Booked via {provider} for {scheduled_date.isoformat()}")
        return interview, False

    interview = Interview(
        account_id=account_id,
        candidate_id=candidate.id,
        interviewer_id=interviewer_id,
        type="video",
        status="scheduled",
        scheduled_date=scheduled_date,
        notes=f"Automatically created from {provider} booking",
    )
    db.add(interview)
    db.flush()
    logger.info(
        "Interview created from booking",
        interview_id=interview.id,
        candidate_id=candidate.id,
        provider=provider,
    )
    return interview, True


def reschedule_active_interview(
    db: Session,
    account_id: int,
    candidate: Candidate,
    scheduled_date: datetime,
    provider: str,
    interviewer_id: Optional[int] = None,
) -> Optional[Interview]:
    interview = find_active_interview(db, account_id, candidate.id, interviewer_id)
    if interview is None:
        return None
    previous = interview.scheduled_date
    interview.scheduled_date = scheduled_date
    interview.status = "scheduled"
    interview.append_note(
        f"[{stamp()}] Rescheduled via {provider} from "
        f"{previous.isoformat() if previous else 'unscheduled'} to {scheduled_date.isoformat()}"
    )
    return interview


def cancel_active_interviews(
    db: Session,
    account_id: int,
    candidate_id: int,
    reason: str,
) -> list[Interview]:
    """Mark every active interview cancelled with an audit note. Rows are kept."""
    interviews = (
        db.query(Interview)
        .filter(
            Interview.account_id == account_id,
            Interview.candidate_id == candidate_id,
            Interview.status.in_(ACTIVE_INTERVIEW_STATUSES),
        )
        .all()
    )
    for interview in interviews:
        interview.status = "cancelled"
        interview.append_note(f"[{stamp()}] Cancelled: {reason}")

    if interviews:
        db.flush()
        logger.info(
            "Active interviews cancelled",
            candidate_id=candidate_id,
            count=len(interviews),
            reason=reason,
        )
    return interviews
