"""Interview management and evaluation endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.context import AppContext, get_app_context
from hireos.middleware.error_handler import BadRequestError, ConflictError, NotFoundError
from hireos.models import AccountMember, Evaluation, Interview, Job
from hireos.models.base import utcnow
from hireos.models.candidates import (
    INTERVIEW_STAGE_STATUSES,
    STATUS_INTERVIEW_SCHEDULED,
    STATUS_INTERVIEW_SENT,
    status_rank,
)
from hireos.schemas.base import PaginatedResponse, PaginationMeta
from hireos.schemas.interviews import (
    EvaluationCreate,
    EvaluationResponse,
    InterviewCreate,
    InterviewResponse,
    InterviewUpdate,
)
from hireos.services.activity import log_activity
from hireos.services.interview_bookkeeping import find_active_interview, lock_candidate, stamp
from hireos.services.lifecycle import (
    apply_status,
    commit_or_conflict,
    complete_operation,
    workflow_effect,
)
from hireos.services.tenant import TenantContext, get_tenant

logger = structlog.get_logger()
router = APIRouter()


def _get_interview(db: Session, interview_id: int, account_id: int) -> Interview:
    interview = (
        db.query(Interview)
        .filter(Interview.id == interview_id, Interview.account_id == account_id)
        .first()
    )
    if not interview:
        raise NotFoundError("Interview", interview_id)
    return interview


def _check_interviewer(db: Session, interviewer_id: Optional[int], account_id: int) -> None:
    if interviewer_id is None:
        return
    member = (
        db.query(AccountMember.id)
        .filter(AccountMember.account_id == account_id, AccountMember.user_id == interviewer_id)
        .first()
    )
    if not member:
        raise BadRequestError("Interviewer is not a member of this account")


@router.post("", response_model=InterviewResponse, status_code=201)
async def create_interview(
    data: InterviewCreate,
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_app_context),
    tenant: TenantContext = Depends(get_tenant),
):
    """
    Create an interview for a candidate.

    Fails with a conflict while the candidate has an active interview. The
    candidate moves to the scheduled stage when a date is given, else to the
    invited stage, unless already further along in the interview stages.
    """
    candidate = lock_candidate(db, data.candidate_id, tenant.account_id)
    if not candidate:
        raise NotFoundError("Candidate", data.candidate_id)
    _check_interviewer(db, data.interviewer_id, tenant.account_id)

    if find_active_interview(db, tenant.account_id, candidate.id) is not None:
        raise ConflictError("Candidate already has an active interview")

    interview = Interview(
        account_id=tenant.account_id,
        candidate_id=candidate.id,
        interviewer_id=data.interviewer_id or tenant.user_id,
        type=data.type,
        status="scheduled" if data.scheduled_date else "pending",
        scheduled_date=data.scheduled_date,
        notes=data.notes,
    )
    db.add(interview)
    db.flush()

    target = STATUS_INTERVIEW_SCHEDULED if data.scheduled_date else STATUS_INTERVIEW_SENT
    already_further = (
        candidate.status in INTERVIEW_STAGE_STATUSES
        and status_rank(candidate.status) >= status_rank(target)
    )
    previous = candidate.status
    if not already_further:
        apply_status(db, candidate, target)
    if data.scheduled_date:
        candidate.last_interview_date = data.scheduled_date

    commit_or_conflict(db)
    logger.info("Interview created", interview_id=interview.id, candidate_id=candidate.id)

    job = db.get(Job, candidate.job_id) if candidate.job_id else None
    effects = [
        *ctx.crm.effects_for(db, candidate, job),
        workflow_effect(ctx, candidate, previous, tenant.user_id),
    ]
    entries = [("interview_created", "interview", interview.id, {
        "candidateId": candidate.id,
        "scheduledDate": data.scheduled_date,
    })]
    if previous != candidate.status:
        entries.append(("status_changed", "candidate", candidate.id, {
            "previousStatus": previous,
            "newStatus": candidate.status,
        }))
    await complete_operation(db, candidate, tenant.user_id, effects, entries)

    db.refresh(interview)
    return interview


@router.get("", response_model=PaginatedResponse[InterviewResponse])
async def list_interviews(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    candidate_id: Optional[int] = Query(None, alias="candidateId"),
    interviewer_id: Optional[int] = Query(None, alias="interviewerId"),
    status: Optional[str] = Query(None),
    tenant: TenantContext = Depends(get_tenant),
):
    """List interviews with optional filtering."""
    query = db.query(Interview).filter(Interview.account_id == tenant.account_id)

    if candidate_id:
        query = query.filter(Interview.candidate_id == candidate_id)
    if interviewer_id:
        query = query.filter(Interview.interviewer_id == interviewer_id)
    if status:
        query = query.filter(Interview.status == status)

    total = query.count()
    interviews = (
        query.order_by(Interview.created_at.desc(), Interview.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return PaginatedResponse(
        data=[InterviewResponse.model_validate(i) for i in interviews],
        meta=PaginationMeta(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=(total + per_page - 1) // per_page,
        ),
    )


@router.get("/{interview_id}", response_model=InterviewResponse)
async def get_interview(
    interview_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return _get_interview(db, interview_id, tenant.account_id)


@router.patch("/{interview_id}", response_model=InterviewResponse)
async def update_interview(
    interview_id: int,
    data: InterviewUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """Update an interview."""
    interview = _get_interview(db, interview_id, tenant.account_id)
    changes = data.model_dump(exclude_unset=True)
    if "interviewer_id" in changes:
        _check_interviewer(db, changes["interviewer_id"], tenant.account_id)

    for field, value in changes.items():
        setattr(interview, field, value)

    log_activity(
        db,
        tenant.account_id,
        "interview_updated",
        "interview",
        interview.id,
        tenant.user_id,
        {"fields": sorted(changes), "candidateId": interview.candidate_id},
    )
    commit_or_conflict(db)
    db.refresh(interview)

    logger.info("Interview updated", interview_id=interview.id, fields=sorted(changes))
    return interview


@router.post("/{interview_id}/complete", response_model=InterviewResponse)
async def complete_interview(
    interview_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """Mark an interview as conducted."""
    interview = _get_interview(db, interview_id, tenant.account_id)
    if interview.status == "cancelled":
        raise BadRequestError("A cancelled interview cannot be completed")

    interview.status = "completed"
    interview.conducted_date = interview.conducted_date or utcnow()
    interview.append_note(f"[{stamp()}] Marked completed")

    log_activity(
        db,
        tenant.account_id,
        "interview_completed",
        "interview",
        interview.id,
        tenant.user_id,
        {"candidateId": interview.candidate_id},
    )
    db.commit()
    db.refresh(interview)
    return interview


@router.post("/{interview_id}/evaluate", response_model=EvaluationResponse)
async def evaluate_interview(
    interview_id: int,
    data: EvaluationCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """Submit the scorecard; resubmitting replaces it. Completes the interview."""
    interview = _get_interview(db, interview_id, tenant.account_id)

    evaluation = db.query(Evaluation).filter(Evaluation.interview_id == interview.id).first()
    created = evaluation is None
    if created:
        evaluation = Evaluation(account_id=tenant.account_id, interview_id=interview.id)
        db.add(evaluation)

    for field, value in data.model_dump().items():
        setattr(evaluation, field, value)
    evaluation.evaluator_id = tenant.user_id

    if interview.status != "completed":
        interview.status = "completed"
        interview.conducted_date = interview.conducted_date or utcnow()

    log_activity(
        db,
        tenant.account_id,
        "interview_evaluated",
        "interview",
        interview.id,
        tenant.user_id,
        {
            "candidateId": interview.candidate_id,
            "overallRating": data.overall_rating,
            "created": created,
        },
    )
    db.commit()
    db.refresh(evaluation)

    logger.info("Interview evaluated", interview_id=interview.id, created=created)
    return evaluation


@router.get("/{interview_id}/evaluation", response_model=EvaluationResponse)
async def get_evaluation(
    interview_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    interview = _get_interview(db, interview_id, tenant.account_id)
    evaluation = db.query(Evaluation).filter(Evaluation.interview_id == interview.id).first()
    if not evaluation:
        raise NotFoundError("Evaluation", interview_id)
    return evaluation
