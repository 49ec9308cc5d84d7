"""GoHighLevel (LeadConnector) contact sync."""

from typing import Any, Optional

import httpx
import structlog

from hireos.config.settings import settings

logger = structlog.get_logger()

GHL_BASE_URL = "https://services.leadconnectorhq.com"
GHL_API_VERSION = "2021-07-28"


def split_name(name: str) -> tuple[str, str]:
    parts = (name or "").strip().split(" ", 1)
    return parts[0], parts[1] if len(parts) > 1 else ""


class GHLClient:
    """Creates or updates GHL contacts for candidates."""

    def __init__(self, base_url: str = GHL_BASE_URL, timeout: float | None = None):
        self.base_url = base_url
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    def _headers(self, credentials: dict[str, Any]) -> dict[str, str]:
        api_key = credentials.get("apiKey")
        if not api_key:
            raise GHLError("GHL apiKey not configured")
        return {
            "Authorization": f"Bearer {api_key}",
            "Version": GHL_API_VERSION,
            "Content-Type": "application/json",
        }

    async def sync_contact(
        self,
        credentials: dict[str, Any],
        contact: dict[str, Any],
        contact_id: Optional[str] = None,
    ) -> str:
        """
        Push a candidate to GHL.

        Args:
            credentials: Decrypted {"apiKey", "locationId"}
            contact: {"name", "email", "phone", "tags"}
            contact_id: Existing GHL contact id; None creates a new contact

        Returns:
            The GHL contact id
        """
        first_name, last_name = split_name(contact.get("name", ""))
        payload = {
            "firstName": first_name,
            "lastName": last_name,
            "email": contact.get("email"),
            "phone": contact.get("phone") or "",
            "tags": contact.get("tags", []),
        }

        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                if contact_id:
                    response = await client.put(
                        f"/contacts/{contact_id}",
                        json=payload,
                        headers=self._headers(credentials),
                    )
                else:
                    payload["locationId"] = credentials.get("locationId")
                    payload["source"] = "HireOS"
                    response = await client.post(
                        "/contacts/upsert",
                        json=payload,
                        headers=self._headers(credentials),
                    )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error("GHL sync failed", error=str(e), email=contact.get("email"))
            raise GHLError(f"GHL sync failed: {str(e)}") from e

        new_id = (data.get("contact") or {}).get("id") or contact_id
        if not new_id:
            raise GHLError("GHL response did not include a contact id")

        logger.info("GHL contact synced", contact_id=new_id, created=contact_id is None)
        return new_id


class GHLError(Exception):
    """Raised when GHL operations fail."""

    pass
