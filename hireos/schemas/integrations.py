"""Pydantic schemas for platform integration endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import field_validator

from .base import CamelModel, safe_json_loads


class IntegrationUpsert(CamelModel):
    """Credentials are write-only; they are encrypted and never returned."""

    credentials: Optional[dict[str, Any]] = None
    settings: Optional[dict[str, Any]] = None
    is_enabled: bool = True


class IntegrationResponse(CamelModel):
    id: int
    platform_id: str
    platform_type: str
    status: str
    is_enabled: bool
    has_credentials: bool = False
    settings: dict[str, Any] = {}
    last_sync_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    @field_validator("settings", mode="before")
    @classmethod
    def decode_settings(cls, v):
        return safe_json_loads(v, {})
