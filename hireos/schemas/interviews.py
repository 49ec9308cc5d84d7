"""Pydantic schemas for Interview endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel

InterviewStatus = Literal["pending", "scheduled", "completed", "cancelled"]


class InterviewCreate(CamelModel):
    """Schema for creating an interview."""

    candidate_id: int
    interviewer_id: Optional[int] = None
    type: str = "video"
    scheduled_date: Optional[datetime] = None
    notes: Optional[str] = None


class InterviewUpdate(CamelModel):
    """Schema for updating an interview (all fields optional)."""

    interviewer_id: Optional[int] = None
    type: Optional[str] = None
    status: Optional[InterviewStatus] = None
    scheduled_date: Optional[datetime] = None
    conducted_date: Optional[datetime] = None
    notes: Optional[str] = None


class InterviewResponse(CamelModel):
    """Schema for full interview response."""

    id: int
    candidate_id: int
    interviewer_id: Optional[int] = None
    type: str
    status: str
    scheduled_date: Optional[datetime] = None
    conducted_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class EvaluationCreate(CamelModel):
    """Interviewer scorecard. Scores are 1-5."""

    technical_score: Optional[int] = Field(default=None, ge=1, le=5)
    communication_score: Optional[int] = Field(default=None, ge=1, le=5)
    problem_solving_score: Optional[int] = Field(default=None, ge=1, le=5)
    cultural_fit_score: Optional[int] = Field(default=None, ge=1, le=5)
    overall_rating: Optional[int] = Field(default=None, ge=1, le=5)

    technical_comments: Optional[str] = None
    communication_comments: Optional[str] = None
    problem_solving_comments: Optional[str] = None
    cultural_fit_comments: Optional[str] = None
    overall_comments: Optional[str] = None


class EvaluationResponse(EvaluationCreate):
    """Schema for interview evaluation."""

    id: int
    interview_id: int
    evaluator_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
