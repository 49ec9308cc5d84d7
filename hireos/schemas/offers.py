"""Pydantic schemas for Offer endpoints (staff and public)."""

from datetime import datetime
from typing import Literal, Optional

from .base import CamelModel
from .candidates import CandidateResponse


class SendOfferRequest(CamelModel):
    """Schema for sending an offer."""

    offer_type: str = "Full-time"
    compensation: str = "Competitive"
    start_date: Optional[datetime] = None
    notes: Optional[str] = None
    contract_url: Optional[str] = None


class OfferResponse(CamelModel):
    """Schema for staff-facing offer response."""

    id: int
    candidate_id: int
    offer_type: str
    compensation: str
    start_date: Optional[datetime] = None
    notes: Optional[str] = None
    status: str
    sent_date: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    contract_url: Optional[str] = None
    acceptance_token: Optional[str] = None
    approved_by_id: Optional[int] = None
    created_at: datetime


class CandidateOfferResponse(CamelModel):
    """Result of SendOffer / staff AcceptOffer."""

    candidate: CandidateResponse
    offer: OfferResponse


class PublicOffer(CamelModel):
    id: int
    offer_type: str
    compensation: str
    start_date: Optional[datetime] = None
    notes: Optional[str] = None
    contract_url: Optional[str] = None


class PublicCandidate(CamelModel):
    name: str
    email: str


class PublicJob(CamelModel):
    title: str
    type: str


class PublicOfferView(CamelModel):
    """Sanitized offer summary shown on the public acceptance page."""

    offer: PublicOffer
    candidate: PublicCandidate
    job: Optional[PublicJob] = None


class OfferRespondRequest(CamelModel):
    """Public accept/decline body."""

    action: Literal["accept", "decline"]


class OfferRespondResponse(CamelModel):
    success: bool = True
    message: str
    status: str
