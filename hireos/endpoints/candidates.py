"""Candidate endpoints: CRUD and lifecycle transitions."""

from typing import Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.context import AppContext, get_app_context
from hireos.models import Candidate
from hireos.schemas.base import PaginatedResponse, PaginationMeta
from hireos.schemas.candidates import CandidateCreate, CandidateResponse, CandidateUpdate
from hireos.schemas.offers import CandidateOfferResponse, OfferResponse, SendOfferRequest
from hireos.services.lifecycle import CandidateLifecycleService
from hireos.services.tenant import TenantContext, get_tenant

logger = structlog.get_logger()
router = APIRouter()


def get_lifecycle_service(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_app_context),
) -> CandidateLifecycleService:
    return CandidateLifecycleService(
        db,
        ctx,
        background_tasks=background_tasks,
        request_base_url=str(request.base_url),
    )


@router.get("", response_model=PaginatedResponse[CandidateResponse])
async def list_candidates(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    job_id: Optional[int] = Query(None, alias="jobId"),
    status: Optional[str] = Query(None),
    min_percentile: Optional[int] = Query(None, alias="minPercentile", ge=0, le=100),
    tenant: TenantContext = Depends(get_tenant),
):
    """List the account's candidates, newest first."""
    query = db.query(Candidate).filter(Candidate.account_id == tenant.account_id)

    if job_id:
        query = query.filter(Candidate.job_id == job_id)
    if status:
        query = query.filter(Candidate.status == status)
    if min_percentile is not None:
        query = query.filter(Candidate.hi_people_percentile >= min_percentile)

    total = query.count()
    candidates = (
        query.order_by(Candidate.created_at.desc(), Candidate.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return PaginatedResponse(
        data=[CandidateResponse.model_validate(c) for c in candidates],
        meta=PaginationMeta(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=(total + per_page - 1) // per_page,
        ),
    )


@router.get("/{candidate_id}", response_model=CandidateResponse)
async def get_candidate(
    candidate_id: int,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
    tenant: TenantContext = Depends(get_tenant),
):
    """Get a candidate by ID."""
    return service.get_candidate(candidate_id, tenant.account_id)


@router.post("", response_model=CandidateResponse, status_code=201)
async def create_candidate(
    data: CandidateCreate,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
    tenant: TenantContext = Depends(get_tenant),
):
    """Create a candidate; a duplicate name and email in the account is a conflict."""
    return await service.create_candidate(data, tenant)


@router.patch("/{candidate_id}", response_model=CandidateResponse)
async def update_candidate(
    candidate_id: int,
    data: CandidateUpdate,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
    tenant: TenantContext = Depends(get_tenant),
):
    """Update a candidate. Status changes run the same transitions as the action endpoints."""
    return await service.update_candidate(candidate_id, data, tenant)


@router.post("/{candidate_id}/invite-to-interview", response_model=CandidateResponse)
async def invite_to_interview(
    candidate_id: int,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
    tenant: TenantContext = Depends(get_tenant),
):
    """Send the interview invitation with the caller's scheduling link."""
    return await service.invite_to_interview(candidate_id, tenant)


@router.post("/{candidate_id}/talent-pool", response_model=CandidateResponse)
async def add_to_talent_pool(
    candidate_id: int,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
    tenant: TenantContext = Depends(get_tenant),
):
    return await service.add_to_talent_pool(candidate_id, tenant)


@router.post("/{candidate_id}/reject", response_model=CandidateResponse)
async def reject_candidate(
    candidate_id: int,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
    tenant: TenantContext = Depends(get_tenant),
):
    return await service.reject(candidate_id, tenant)


@router.post("/{candidate_id}/send-offer", response_model=CandidateOfferResponse)
async def send_offer(
    candidate_id: int,
    data: Optional[SendOfferRequest] = None,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
    tenant: TenantContext = Depends(get_tenant),
):
    """Issue an offer and email the candidate their acceptance link."""
    candidate, offer = await service.send_offer(candidate_id, data or SendOfferRequest(), tenant)
    return CandidateOfferResponse(
        candidate=CandidateResponse.model_validate(candidate),
        offer=OfferResponse.model_validate(offer),
    )


@router.post("/{candidate_id}/accept-offer", response_model=CandidateOfferResponse)
async def accept_offer(
    candidate_id: int,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
    tenant: TenantContext = Depends(get_tenant),
):
    """Record acceptance of the candidate's open offer on their behalf."""
    candidate, offer = await service.accept_offer(candidate_id, tenant)
    return CandidateOfferResponse(
        candidate=CandidateResponse.model_validate(candidate),
        offer=OfferResponse.model_validate(offer),
    )
