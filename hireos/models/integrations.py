"""PlatformIntegration model for per-account third-party connections."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint

from .base import BaseModel

PLATFORM_TYPES = {
    "ghl": "crm",
    "airtable": "crm",
    "google-sheets": "crm",
    "slack": "notification",
    "google-calendar": "calendar",
    "anthropic": "ai",
}

CRM_PLATFORMS = ("ghl", "airtable", "google-sheets")


class PlatformIntegration(BaseModel):
    """
    Third-party integration configured for an account.

    credentials holds Fernet-encrypted JSON; settings holds plain JSON
    (Slack event list, calendar crossSync flag, sheet/table names).
    """

    __tablename__ = "platform_integrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)

    platform_id = Column(String(50), nullable=False)
    platform_type = Column(String(20), nullable=False)

    # connected, disconnected, error
    status = Column(String(20), nullable=False, default="connected")
    is_enabled = Column(Boolean, default=True)

    credentials = Column(Text, nullable=True)  # Encrypted JSON
    settings = Column(Text, nullable=True)  # JSON

    last_sync_at = Column(DateTime, nullable=True)
    last_error = Column(Text, nullable=True)
    last_error_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("account_id", "platform_id", name="uq_platform_integrations_account_platform"),
    )

    @property
    def is_usable(self) -> bool:
        return bool(self.is_enabled) and self.status == "connected"

    def __repr__(self) -> str:
        return f"<PlatformIntegration(id={self.id}, platform={self.platform_id}, status={self.status})>"
