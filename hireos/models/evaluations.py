"""Evaluation model for interviewer scorecards."""

from sqlalchemy import Column, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship

from .base import BaseModel


class Evaluation(BaseModel):
    """
    Interviewer scorecard for one interview (latest submission wins).

    Scores are 1-5. Submitting an evaluation completes the interview.
    """

    __tablename__ = "evaluations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    interview_id = Column(
        Integer,
        ForeignKey("interviews.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    evaluator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    technical_score = Column(Integer, nullable=True)
    communication_score = Column(Integer, nullable=True)
    problem_solving_score = Column(Integer, nullable=True)
    cultural_fit_score = Column(Integer, nullable=True)
    overall_rating = Column(Integer, nullable=True)

    technical_comments = Column(Text, nullable=True)
    communication_comments = Column(Text, nullable=True)
    problem_solving_comments = Column(Text, nullable=True)
    cultural_fit_comments = Column(Text, nullable=True)
    overall_comments = Column(Text, nullable=True)

    interview = relationship("Interview", back_populates="evaluation")

    def __repr__(self) -> str:
        return f"<Evaluation(id={self.id}, interview_id={self.interview_id})>"
