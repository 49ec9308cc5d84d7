"""Slack incoming-webhook client."""

import httpx
import structlog

from hireos.config.settings import settings

logger = structlog.get_logger()


class SlackNotifier:
    """Posts messages to an account's Slack incoming webhook."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    async def post_message(self, webhook_url: str, text: str) -> None:
        """
        Post a plain-text message.

        Raises:
            SlackError: webhook missing or Slack returned an error
        """
        if not webhook_url:
            raise SlackError("Slack webhook URL not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(webhook_url, json={"text": text})
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Slack post failed", error=str(e))
            raise SlackError(f"Slack post failed: {str(e)}") from e

        logger.info("Slack message posted", chars=len(text))


class SlackError(Exception):
    """Raised when Slack operations fail."""

    pass
