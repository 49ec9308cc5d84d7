"""Candidate model and pipeline status constants."""

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel

# Pipeline stages, ordered by their numeric prefix
STATUS_APPLICATION_SUBMITTED = "00_application_submitted"
STATUS_ASSESSMENT_SENT = "15_assessment_sent"
STATUS_ASSESSMENT_COMPLETED = "30_assessment_completed"
STATUS_INTERVIEW_SENT = "45_1st_interview_sent"
STATUS_INTERVIEW_SCHEDULED = "60_1st_interview_scheduled"
STATUS_SECOND_INTERVIEW_SCHEDULED = "75_2nd_interview_scheduled"
STATUS_TALENT_POOL = "90_talent_pool"
STATUS_OFFER_SENT = "95_offer_sent"
STATUS_OFFER_ACCEPTED = "100_offer_accepted"
STATUS_REJECTED = "200_rejected"

CANDIDATE_STATUSES = (
    STATUS_APPLICATION_SUBMITTED,
    STATUS_ASSESSMENT_SENT,
    STATUS_ASSESSMENT_COMPLETED,
    STATUS_INTERVIEW_SENT,
    STATUS_INTERVIEW_SCHEDULED,
    STATUS_SECOND_INTERVIEW_SCHEDULED,
    STATUS_TALENT_POOL,
    STATUS_OFFER_SENT,
    STATUS_OFFER_ACCEPTED,
    STATUS_REJECTED,
)

INTERVIEW_STAGE_STATUSES = frozenset({
    STATUS_INTERVIEW_SENT,
    STATUS_INTERVIEW_SCHEDULED,
    STATUS_SECOND_INTERVIEW_SCHEDULED,
})

# Terminal outcome flag kept alongside status
DECISION_OFFER = "offer"
DECISION_REJECTED = "rejected"
DECISION_TALENT_POOL = "talent_pool"

FINAL_DECISIONS = (DECISION_OFFER, DECISION_REJECTED, DECISION_TALENT_POOL)

# Legacy spellings accepted on input
DECISION_ALIASES = {
    "offer_sent": DECISION_OFFER,
}

# Decision implied by a status; any other status clears the decision
STATUS_DECISIONS = {
    STATUS_REJECTED: DECISION_REJECTED,
    STATUS_TALENT_POOL: DECISION_TALENT_POOL,
    STATUS_OFFER_SENT: DECISION_OFFER,
    STATUS_OFFER_ACCEPTED: DECISION_OFFER,
}

# Status a decision moves the candidate to when set on its own
DECISION_STATUSES = {
    DECISION_REJECTED: STATUS_REJECTED,
    DECISION_TALENT_POOL: STATUS_TALENT_POOL,
    DECISION_OFFER: STATUS_OFFER_SENT,
}


def status_rank(status: str) -> int:
    """Numeric pipeline position encoded in the status prefix."""
    prefix = (status or "").split("_", 1)[0]
    return int(prefix) if prefix.isdigit() else -1

# Writable only by privileged roles
EVALUATION_FIELDS = (
    "technical_proficiency",
    "leadership_initiative",
    "problem_solving",
    "communication_skills",
    "cultural_fit",
    "hi_people_score",
    "hi_people_percentile",
)


class Candidate(BaseModel):
    """
    Applicant in a hiring pipeline.

    status and final_decision_status stay consistent for terminal outcomes:
    200_rejected <-> rejected, 90_talent_pool <-> talent_pool,
    95_offer_sent / 100_offer_accepted -> offer.
    """

    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)

    # Contact
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)

    # Resume
    resume_url = Column(String(1000), nullable=True)
    skills = Column(Text, nullable=True)  # JSON list
    experience_years = Column(Integer, nullable=True)
    summary = Column(Text, nullable=True)
    match_score = Column(Integer, nullable=True)
    parsed_resume_data = Column(Text, nullable=True)  # JSON

    # Pipeline
    status = Column(String(50), nullable=False, default=STATUS_APPLICATION_SUBMITTED)
    final_decision_status = Column(String(20), nullable=True)
    last_interview_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    # Assessment (HiPeople)
    hi_people_score = Column(Integer, nullable=True)
    hi_people_percentile = Column(Integer, nullable=True)
    hi_people_completed_at = Column(DateTime, nullable=True)
    hi_people_assessment_link = Column(String(500), nullable=True)

    # Evaluation criteria (1-5)
    technical_proficiency = Column(Float, nullable=True)
    leadership_initiative = Column(Float, nullable=True)
    problem_solving = Column(Float, nullable=True)
    communication_skills = Column(Float, nullable=True)
    cultural_fit = Column(Float, nullable=True)

    # External linkage
    ghl_contact_id = Column(String(100), nullable=True)

    __table_args__ = (
        Index("idx_candidates_account", "account_id"),
        Index("idx_candidates_account_email", "account_id", "email"),
        Index("idx_candidates_ghl_contact", "ghl_contact_id"),
    )

    job = relationship("Job", back_populates="candidates")
    interviews = relationship("Interview", back_populates="candidate")
    offers = relationship("Offer", back_populates="candidate")

    def __repr__(self) -> str:
        return f"<Candidate(id={self.id}, name={self.name}, status={self.status})>"
