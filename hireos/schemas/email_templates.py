"""Pydantic schemas for EmailTemplate endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel

TemplateKind = Literal["interview", "offer", "rejection", "talent_pool", "onboarding", "assessment"]


class EmailTemplateCreate(CamelModel):
    """Schema for creating a template.

    personal=True stores it as the caller's own template for that kind;
    otherwise it is an account-wide template.
    """

    name: str = Field(min_length=1, max_length=100)
    template_type: TemplateKind
    subject: str = Field(min_length=1, max_length=500)
    body_html: str = Field(min_length=1)
    is_active: bool = True
    is_default: bool = False
    personal: bool = True


class EmailTemplateUpdate(CamelModel):
    name: Optional[str] = None
    subject: Optional[str] = None
    body_html: Optional[str] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None


class EmailTemplateResponse(CamelModel):
    id: int
    user_id: Optional[int] = None
    name: str
    template_type: str
    subject: str
    body_html: str
    is_active: bool
    is_default: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
