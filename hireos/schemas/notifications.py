"""Pydantic schemas for in-app notifications."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from .base import CamelModel, safe_json_loads


class NotificationResponse(CamelModel):
    id: int
    type: str
    title: str
    message: str
    link: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_json")
    read: bool = False
    created_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def decode_metadata(cls, v):
        return safe_json_loads(v, {}) or {}


class UnreadCountResponse(CamelModel):
    count: int


class MarkReadResponse(CamelModel):
    updated: int
