"""Interview model."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from .base import BaseModel

ACTIVE_INTERVIEW_STATUSES = ("scheduled", "pending")


class Interview(BaseModel):
    """
    Interview with a candidate.

    Status Values:
    - pending: Invite sent, waiting for the candidate to book
    - scheduled: Invite sent or booked (scheduled_date set once booked)
    - completed: Conducted, possibly evaluated
    - cancelled: Candidate left the interview stage or cancelled the booking

    A NULL scheduled_date means "invited but not yet booked". At most one
    active (scheduled/pending) interview exists per candidate.
    """

    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False)
    interviewer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # video, phone, onsite
    type = Column(String(50), nullable=False, default="video")

    # pending, scheduled, completed, cancelled
    status = Column(String(20), nullable=False, default="scheduled")

    scheduled_date = Column(DateTime, nullable=True)
    conducted_date = Column(DateTime, nullable=True)

    # Append-only audit trail of automated actions
    notes = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_interviews_account", "account_id"),
        Index("idx_interviews_candidate", "candidate_id"),
        Index(
            "uq_interviews_active_candidate",
            "candidate_id",
            unique=True,
            postgresql_where=text("status IN ('scheduled', 'pending')"),
            sqlite_where=text("status IN ('scheduled', 'pending')"),
        ),
    )

    candidate = relationship("Candidate", back_populates="interviews")
    interviewer = relationship("User")
    evaluation = relationship("Evaluation", back_populates="interview", uselist=False)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_INTERVIEW_STATUSES

    def append_note(self, note: str) -> None:
        """Append a line to the audit notes."""
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def __repr__(self) -> str:
        return f"<Interview(id={self.id}, status={self.status}, candidate={self.candidate_id})>"
