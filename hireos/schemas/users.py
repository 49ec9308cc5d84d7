"""Pydantic schemas for the current user."""

from typing import Optional

from .base import CamelModel


class UserResponse(CamelModel):
    id: int
    username: str
    full_name: str
    email: str
    calendar_link: Optional[str] = None
    calendar_provider: Optional[str] = None
    account_id: int
    role: str


class UserUpdate(CamelModel):
    """Self-service profile update."""

    full_name: Optional[str] = None
    calendar_link: Optional[str] = None
    calendar_provider: Optional[str] = None
