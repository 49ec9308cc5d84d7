"""Google Calendar event mirroring for bookings made on other providers."""

from datetime import datetime, timedelta
from typing import Any

import httpx
import structlog

from hireos.config.settings import settings

logger = structlog.get_logger()

CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
DEFAULT_DURATION_MINUTES = 30


class GoogleCalendarMirror:
    """Creates a mirror event in the account's Google Calendar."""

    def __init__(self, base_url: str = CALENDAR_API_BASE, timeout: float | None = None):
        self.base_url = base_url
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    async def create_event(
        self,
        credentials: dict[str, Any],
        summary: str,
        start: datetime,
        attendee_email: str,
        description: str = "",
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
    ) -> str:
        """
        Insert an event.

        Args:
            credentials: Decrypted {"accessToken", "calendarId"}

        Returns:
            The Google event id
        """
        token = credentials.get("accessToken")
        if not token:
            raise GoogleCalendarError("Google Calendar accessToken not configured")
        calendar_id = credentials.get("calendarId") or "primary"

        end = start + timedelta(minutes=duration_minutes)
        body = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": start.isoformat(), "timeZone": "UTC"},
            "end": {"dateTime": end.isoformat(), "timeZone": "UTC"},
            "attendees": [{"email": attendee_email}],
        }

        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.post(
                    f"/calendars/{calendar_id}/events",
                    json=body,
                    headers={"Authorization": f"Bearer {token}"},
                )
                response.raise_for_status()
                event_id = response.json().get("id", "")
        except httpx.HTTPError as e:
            logger.error("Google Calendar mirror failed", error=str(e))
            raise GoogleCalendarError(f"Google Calendar mirror failed: {str(e)}") from e

        logger.info("Google Calendar event created", event_id=event_id)
        return event_id


class GoogleCalendarError(Exception):
    """Raised when Google Calendar operations fail."""

    pass
