"""Fernet encryption for integration credentials."""

import json
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
import structlog

from hireos.config.settings import settings

logger = structlog.get_logger()

# Cache fernet instance
_fernet: Fernet | None = None


class EncryptionKeyError(Exception):
    """Raised when encryption key is missing or invalid in production."""
    pass


def get_fernet() -> Fernet:
    """Get or create Fernet instance.

    Raises:
        EncryptionKeyError: If ENCRYPTION_KEY is missing or malformed in production
    """
    global _fernet
    if _fernet is None:
        key = settings.ENCRYPTION_KEY
        if not key:
            if settings.ENVIRONMENT == "production":
                raise EncryptionKeyError("ENCRYPTION_KEY is required in production")
            logger.warning(
                "No ENCRYPTION_KEY set, generating temporary key. "
                "Stored credentials will not survive a restart."
            )
            key = Fernet.generate_key().decode()

        try:
            _fernet = Fernet(key.encode() if isinstance(key, str) else key)
        except ValueError as e:
            raise EncryptionKeyError(f"ENCRYPTION_KEY is not a valid Fernet key: {e}")

    return _fernet


def validate_encryption_key() -> None:
    """Fail fast at startup if the key is unusable."""
    get_fernet()


def encrypt_value(value: str) -> str:
    """Encrypt a string value using Fernet."""
    if not value:
        return value
    return get_fernet().encrypt(value.encode()).decode()


def decrypt_value(encrypted_value: str) -> str:
    """
    Decrypt a Fernet-encrypted value.

    Raises:
        InvalidToken: If decryption fails
    """
    if not encrypted_value:
        return encrypted_value

    try:
        return get_fernet().decrypt(encrypted_value.encode()).decode()
    except InvalidToken:
        logger.error("Failed to decrypt value - invalid token")
        raise


def encrypt_json(data: dict[str, Any]) -> str:
    """Serialize and encrypt a credentials dict."""
    return encrypt_value(json.dumps(data))


def decrypt_json(encrypted_value: str | None) -> dict[str, Any]:
    """Decrypt a credentials dict; empty input gives an empty dict."""
    if not encrypted_value:
        return {}
    return json.loads(decrypt_value(encrypted_value))
