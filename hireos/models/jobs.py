"""Job posting model."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel

JOB_STATUSES = ("draft", "active", "closed")


class Job(BaseModel):
    """
    Job posting.

    Lifecycle: created as draft, approved to active (posted_date set),
    closed is terminal for new applications.
    """

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    skills = Column(Text, nullable=True)
    department = Column(String(255), nullable=True)
    type = Column(String(50), nullable=False, default="Full-time")  # Full-time, Contract, ...

    # draft, active, closed
    status = Column(String(20), nullable=False, default="draft")

    # Express review sends the assessment immediately instead of after a delay
    express_review = Column(Boolean, default=False)
    hi_people_link = Column(String(500), nullable=True)

    submitter_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    posted_date = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_jobs_account", "account_id"),
    )

    candidates = relationship("Candidate", back_populates="job")

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title={self.title}, status={self.status})>"
