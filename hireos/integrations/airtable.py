"""Airtable record upsert keyed on candidate email."""

from typing import Any

import httpx
import structlog

from hireos.config.settings import settings

logger = structlog.get_logger()

AIRTABLE_API_BASE = "https://api.airtable.com/v0"


class AirtableClient:
    """Upserts candidate rows into an Airtable table."""

    def __init__(self, base_url: str = AIRTABLE_API_BASE, timeout: float | None = None):
        self.base_url = base_url
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    async def upsert_record(
        self,
        credentials: dict[str, Any],
        fields: dict[str, Any],
        table_name: str = "Candidates",
    ) -> str:
        """
        Create or update the record whose Email matches.

        Args:
            credentials: Decrypted {"apiKey", "baseId"}
            fields: Airtable field values; must include "Email"
            table_name: Target table

        Returns:
            The Airtable record id
        """
        api_key = credentials.get("apiKey")
        base_id = credentials.get("baseId")
        if not api_key or not base_id:
            raise AirtableError("Airtable apiKey/baseId not configured")

        # Airtable rejects null values for typed fields
        clean = {k: v for k, v in fields.items() if v not in (None, "")}

        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.patch(
                    f"/{base_id}/{table_name}",
                    json={
                        "performUpsert": {"fieldsToMergeOn": ["Email"]},
                        "records": [{"fields": clean}],
                    },
                    headers={"Authorization": f"Bearer {api_key}"},
                )
                response.raise_for_status()
                records = response.json().get("records", [])
        except httpx.HTTPError as e:
            logger.error("Airtable upsert failed", error=str(e), table=table_name)
            raise AirtableError(f"Airtable upsert failed: {str(e)}") from e

        if not records:
            raise AirtableError("Airtable upsert returned no records")

        record_id = records[0]["id"]
        logger.info("Airtable record upserted", record_id=record_id, table=table_name)
        return record_id


class AirtableError(Exception):
    """Raised when Airtable operations fail."""

    pass
