"""Offer model."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel

OFFER_TERMINAL_STATUSES = ("accepted", "declined")


class Offer(BaseModel):
    """
    Job offer for a candidate.

    The latest offer per candidate is the active one. acceptance_token grants
    unauthenticated access to the public accept/decline action; accepted and
    declined are terminal.
    """

    __tablename__ = "offers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False)
    approved_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    offer_type = Column(String(50), nullable=False, default="Full-time")
    compensation = Column(String(255), nullable=False, default="Competitive")
    start_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    # draft, sent, accepted, declined
    status = Column(String(20), nullable=False, default="draft")

    sent_date = Column(DateTime, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    contract_url = Column(String(1000), nullable=True)
    acceptance_token = Column(String(64), unique=True, nullable=True)

    __table_args__ = (
        Index("idx_offers_candidate", "candidate_id"),
    )

    candidate = relationship("Candidate", back_populates="offers")

    @property
    def is_terminal(self) -> bool:
        return self.status in OFFER_TERMINAL_STATUSES

    def __repr__(self) -> str:
        return f"<Offer(id={self.id}, candidate={self.candidate_id}, status={self.status})>"
