"""SES integration for sending candidate emails."""

import asyncio
from typing import List, Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from hireos.config.settings import settings
from hireos.services.email_validator import is_likely_invalid_email

logger = structlog.get_logger()


class SESService:
    """Service for sending emails via AWS SES."""

    def __init__(self, from_email: Optional[str] = None, from_name: Optional[str] = None):
        """Initialize SES client.

        Args:
            from_email: Override sender email (defaults to settings.SES_FROM_EMAIL)
            from_name: Override sender name (defaults to settings.SES_FROM_NAME)
        """
        client_kwargs = {"region_name": settings.SES_REGION}
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            client_kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
            client_kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY

        self.client = boto3.client("ses", **client_kwargs)
        self.from_email = from_email or settings.SES_FROM_EMAIL
        self.from_name = from_name or settings.SES_FROM_NAME

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        reply_to: Optional[str] = None,
        cc: Optional[List[str]] = None,
    ) -> str:
        """Send an email via SES.

        Args:
            to: Recipient email address
            subject: Email subject
            html_body: Rendered HTML content
            reply_to: Reply-to address (usually the sending staff user)
            cc: CC addresses

        Returns:
            SES message ID

        Raises:
            EmailDeliveryError: address refused by the deliverability heuristic
                (non_existent=True) or SES rejected the request
        """
        if is_likely_invalid_email(to):
            logger.warning("Email refused by deliverability check", to=to)
            raise EmailDeliveryError(f"Refusing to send to likely invalid address: {to}", non_existent=True)

        destination = {"ToAddresses": [to]}
        if cc:
            destination["CcAddresses"] = cc

        params = {
            "Source": f"{self.from_name} <{self.from_email}>",
            "Destination": destination,
            "Message": {
                "Subject": {"Data": subject, "Charset": "utf-8"},
                "Body": {"Html": {"Data": html_body, "Charset": "utf-8"}},
            },
        }
        if reply_to:
            params["ReplyToAddresses"] = [reply_to]

        try:
            # boto3 is blocking; keep the event loop free for concurrent effects
            response = await asyncio.to_thread(self.client.send_email, **params)
        except (ClientError, BotoCoreError) as e:
            logger.error("SES send failed", error=str(e), to=to)
            raise EmailDeliveryError(f"Email send failed: {str(e)}") from e

        message_id = response["MessageId"]
        logger.info(
            "Email sent",
            message_id=message_id,
            to=to,
            subject=subject,
        )
        return message_id


class EmailDeliveryError(Exception):
    """Raised when an email cannot be sent."""

    def __init__(self, message: str, non_existent: bool = False):
        super().__init__(message)
        self.non_existent = non_existent
