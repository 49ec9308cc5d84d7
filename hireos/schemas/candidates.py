"""Pydantic schemas for Candidate endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from hireos.models.candidates import CANDIDATE_STATUSES, DECISION_ALIASES, FINAL_DECISIONS

from .base import CamelModel, safe_json_loads


def normalize_decision(value: Optional[str]) -> Optional[str]:
    """Map legacy decision spellings onto the canonical enum."""
    if value is None or value == "":
        return None
    value = DECISION_ALIASES.get(value, value)
    if value not in FINAL_DECISIONS:
        raise ValueError(f"finalDecisionStatus must be one of {', '.join(FINAL_DECISIONS)}")
    return value


class CandidateCreate(CamelModel):
    """Schema for creating a candidate."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    job_id: Optional[int] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    resume_url: Optional[str] = None
    skills: Optional[list[str]] = None
    experience_years: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("name", "email")
    @classmethod
    def strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class CandidateUpdate(CamelModel):
    """Schema for updating a candidate (all fields optional, only sent fields apply)."""

    name: Optional[str] = None
    email: Optional[str] = None
    job_id: Optional[int] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    resume_url: Optional[str] = None
    skills: Optional[list[str]] = None
    experience_years: Optional[int] = None
    match_score: Optional[int] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None

    status: Optional[str] = None
    final_decision_status: Optional[str] = None
    last_interview_date: Optional[datetime] = None

    # Evaluation criteria (privileged roles only)
    technical_proficiency: Optional[float] = Field(default=None, ge=0, le=5)
    leadership_initiative: Optional[float] = Field(default=None, ge=0, le=5)
    problem_solving: Optional[float] = Field(default=None, ge=0, le=5)
    communication_skills: Optional[float] = Field(default=None, ge=0, le=5)
    cultural_fit: Optional[float] = Field(default=None, ge=0, le=5)
    hi_people_score: Optional[int] = None
    hi_people_percentile: Optional[int] = Field(default=None, ge=0, le=100)

    hi_people_completed_at: Optional[datetime] = None
    hi_people_assessment_link: Optional[str] = None

    @field_validator("name", "email")
    @classmethod
    def required_when_sent(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("must not be null")
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in CANDIDATE_STATUSES:
            raise ValueError(f"Unknown candidate status: {v}")
        return v

    @field_validator("final_decision_status")
    @classmethod
    def canonical_decision(cls, v: Optional[str]) -> Optional[str]:
        return normalize_decision(v)


class CandidateResponse(CamelModel):
    """Schema for full candidate response."""

    id: int
    account_id: int
    job_id: Optional[int] = None
    name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    resume_url: Optional[str] = None
    skills: list[str] = []
    experience_years: Optional[int] = None
    summary: Optional[str] = None
    match_score: Optional[int] = None
    status: str
    final_decision_status: Optional[str] = None
    last_interview_date: Optional[datetime] = None
    notes: Optional[str] = None
    hi_people_score: Optional[int] = None
    hi_people_percentile: Optional[int] = None
    hi_people_completed_at: Optional[datetime] = None
    hi_people_assessment_link: Optional[str] = None
    technical_proficiency: Optional[float] = None
    leadership_initiative: Optional[float] = None
    problem_solving: Optional[float] = None
    communication_skills: Optional[float] = None
    cultural_fit: Optional[float] = None
    ghl_contact_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("skills", mode="before")
    @classmethod
    def decode_skills(cls, v):
        return safe_json_loads(v, [])
