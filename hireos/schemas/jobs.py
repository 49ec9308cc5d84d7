"""Pydantic schemas for Job endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import CamelModel


class JobBase(CamelModel):
    """Base job fields."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    skills: Optional[str] = None
    department: Optional[str] = None
    type: str = "Full-time"
    express_review: bool = False
    hi_people_link: Optional[str] = None


class JobCreate(JobBase):
    """Schema for creating a job (always starts as draft)."""

    pass


class JobUpdate(CamelModel):
    """Schema for updating a job (all fields optional)."""

    title: Optional[str] = None
    description: Optional[str] = None
    skills: Optional[str] = None
    department: Optional[str] = None
    type: Optional[str] = None
    express_review: Optional[bool] = None
    hi_people_link: Optional[str] = None


class JobResponse(JobBase):
    """Schema for full job response."""

    id: int
    account_id: int
    status: str
    submitter_id: Optional[int] = None
    posted_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
