"""Job posting endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.context import AppContext, get_app_context
from hireos.middleware.error_handler import BadRequestError, NotFoundError
from hireos.models import Job
from hireos.models.base import utcnow
from hireos.schemas.base import PaginatedResponse, PaginationMeta
from hireos.schemas.jobs import JobCreate, JobResponse, JobUpdate
from hireos.services.activity import log_activity
from hireos.services.effects import run_effects
from hireos.services.notifications import slack_effect
from hireos.services.tenant import TenantContext, get_tenant

logger = structlog.get_logger()
router = APIRouter()


def _get_job(db: Session, job_id: int, account_id: int) -> Job:
    job = db.query(Job).filter(Job.id == job_id, Job.account_id == account_id).first()
    if not job:
        raise NotFoundError("Job", job_id)
    return job


@router.get("", response_model=PaginatedResponse[JobResponse])
async def list_jobs(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    tenant: TenantContext = Depends(get_tenant),
):
    """List the account's jobs."""
    query = db.query(Job).filter(Job.account_id == tenant.account_id)

    if status:
        query = query.filter(Job.status == status)
    if search:
        query = query.filter(Job.title.ilike(f"%{search}%"))

    total = query.count()
    jobs = (
        query.order_by(Job.created_at.desc(), Job.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return PaginatedResponse(
        data=[JobResponse.model_validate(j) for j in jobs],
        meta=PaginationMeta(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=(total + per_page - 1) // per_page,
        ),
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return _get_job(db, job_id, tenant.account_id)


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """Create a job as a draft."""
    job = Job(
        account_id=tenant.account_id,
        submitter_id=tenant.user_id,
        status="draft",
        **data.model_dump(),
    )
    db.add(job)
    db.flush()
    log_activity(db, tenant.account_id, "created", "job", job.id, tenant.user_id, {"title": job.title})
    db.commit()
    db.refresh(job)

    logger.info("Job created", job_id=job.id)
    return job


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    data: JobUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    job = _get_job(db, job_id, tenant.account_id)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(job, field, value)

    log_activity(db, tenant.account_id, "updated", "job", job.id, tenant.user_id, {"fields": sorted(changes)})
    db.commit()
    db.refresh(job)
    return job


@router.post("/{job_id}/approve", response_model=JobResponse)
async def approve_job(
    job_id: int,
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_app_context),
    tenant: TenantContext = Depends(get_tenant),
):
    """Publish a draft job and announce it in Slack."""
    job = _get_job(db, job_id, tenant.account_id)
    if job.status == "closed":
        raise BadRequestError("A closed job cannot be approved")

    job.status = "active"
    job.posted_date = job.posted_date or utcnow()
    db.commit()

    effect = slack_effect(ctx, db, tenant.account_id, "job_posted", job=job, user=tenant.user)
    report = await run_effects([effect] if effect else [])

    log_activity(
        db,
        tenant.account_id,
        "approved",
        "job",
        job.id,
        tenant.user_id,
        {"effects": report.to_list()},
    )
    db.commit()
    db.refresh(job)

    logger.info("Job approved", job_id=job.id)
    return job


@router.post("/{job_id}/close", response_model=JobResponse)
async def close_job(
    job_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """Close a job to new applications."""
    job = _get_job(db, job_id, tenant.account_id)
    job.status = "closed"
    log_activity(db, tenant.account_id, "closed", "job", job.id, tenant.user_id)
    db.commit()
    db.refresh(job)

    logger.info("Job closed", job_id=job.id)
    return job
