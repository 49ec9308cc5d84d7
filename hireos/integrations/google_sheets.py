"""Google Sheets candidate row sync (find by email in column B, else append)."""

from typing import Any

import httpx
import structlog

from hireos.config.settings import settings

logger = structlog.get_logger()

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"

# Column order: A name, B email, C phone, D status, E job, F match score
ROW_COLUMNS = ("name", "email", "phone", "status", "jobTitle", "matchScore")


class GoogleSheetsClient:
    """Keeps one row per candidate in a spreadsheet."""

    def __init__(self, base_url: str = SHEETS_API_BASE, timeout: float | None = None):
        self.base_url = base_url
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    async def upsert_row(
        self,
        credentials: dict[str, Any],
        candidate: dict[str, Any],
        sheet_name: str = "Candidates",
    ) -> int:
        """
        Update the row whose column B matches the candidate email, or append one.

        Args:
            credentials: Decrypted {"accessToken", "spreadsheetId"}
            candidate: Values keyed by ROW_COLUMNS
            sheet_name: Worksheet title

        Returns:
            1-based row number written
        """
        token = credentials.get("accessToken")
        spreadsheet_id = credentials.get("spreadsheetId")
        if not token or not spreadsheet_id:
            raise GoogleSheetsError("Google Sheets accessToken/spreadsheetId not configured")

        row = ["" if candidate.get(col) is None else candidate.get(col) for col in ROW_COLUMNS]
        email = (candidate.get("email") or "").lower()
        headers = {"Authorization": f"Bearer {token}"}

        try:
            async with httpx.AsyncClient(
                base_url=f"{self.base_url}/{spreadsheet_id}", timeout=self.timeout
            ) as client:
                response = await client.get(f"/values/{sheet_name}!B:B", headers=headers)
                response.raise_for_status()
                emails = [
                    (cells[0] if cells else "").lower()
                    for cells in response.json().get("values", [])
                ]

                if email in emails:
                    row_number = emails.index(email) + 1
                    response = await client.put(
                        f"/values/{sheet_name}!A{row_number}:F{row_number}",
                        params={"valueInputOption": "RAW"},
                        json={"values": [row]},
                        headers=headers,
                    )
                else:
                    row_number = len(emails) + 1
                    response = await client.post(
                        f"/values/{sheet_name}!A:F:append",
                        params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
                        json={"values": [row]},
                        headers=headers,
                    )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Google Sheets sync failed", error=str(e), sheet=sheet_name)
            raise GoogleSheetsError(f"Google Sheets sync failed: {str(e)}") from e

        logger.info("Google Sheets row synced", row=row_number, sheet=sheet_name)
        return row_number


class GoogleSheetsError(Exception):
    """Raised when Google Sheets operations fail."""

    pass
