"""Lookup helpers for an account's platform integrations."""

from typing import Any, Optional

from sqlalchemy.orm import Session

from hireos.models import PlatformIntegration
from hireos.schemas.base import safe_json_loads
from hireos.services.encryption import decrypt_json


def get_integration(db: Session, account_id: int, platform_id: str) -> Optional[PlatformIntegration]:
    return (
        db.query(PlatformIntegration)
        .filter(
            PlatformIntegration.account_id == account_id,
            PlatformIntegration.platform_id == platform_id,
        )
        .first()
    )


def get_usable_integration(db: Session, account_id: int, platform_id: str) -> Optional[PlatformIntegration]:
    """The integration if it is enabled and connected, else None."""
    integration = get_integration(db, account_id, platform_id)
    return integration if integration and integration.is_usable else None


def integration_settings(integration: Optional[PlatformIntegration]) -> dict[str, Any]:
    if integration is None:
        return {}
    return safe_json_loads(integration.settings, {}) or {}


def integration_credentials(integration: Optional[PlatformIntegration]) -> dict[str, Any]:
    """Decrypted credentials.

    Raises:
        cryptography.fernet.InvalidToken: stored value cannot be decrypted
    """
    if integration is None:
        return {}
    return decrypt_json(integration.credentials)
