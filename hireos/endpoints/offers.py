"""Public offer endpoints, authorized by the offer's acceptance token."""

import structlog
from fastapi import APIRouter, Depends

from hireos.endpoints.candidates import get_lifecycle_service
from hireos.schemas.offers import (
    OfferRespondRequest,
    OfferRespondResponse,
    PublicCandidate,
    PublicJob,
    PublicOffer,
    PublicOfferView,
)
from hireos.services.lifecycle import CandidateLifecycleService

logger = structlog.get_logger()
router = APIRouter()


@router.get("/{token}", response_model=PublicOfferView)
async def get_public_offer(
    token: str,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
):
    """Offer summary for the acceptance page."""
    view = service.get_public_offer(token)
    job = view["job"]
    return PublicOfferView(
        offer=PublicOffer.model_validate(view["offer"]),
        candidate=PublicCandidate.model_validate(view["candidate"]),
        job=PublicJob.model_validate(job) if job else None,
    )


@router.post("/{token}/respond", response_model=OfferRespondResponse)
async def respond_to_offer(
    token: str,
    data: OfferRespondRequest,
    service: CandidateLifecycleService = Depends(get_lifecycle_service),
):
    """Accept or decline an offer. The first response is final."""
    offer = await service.respond_to_offer(token, data.action)
    message = "Offer accepted" if offer.status == "accepted" else "Offer declined"
    return OfferRespondResponse(success=True, message=message, status=offer.status)
