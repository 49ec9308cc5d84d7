"""Outbound hook to the external workflow engine."""

from typing import Any, Optional

import httpx
import structlog

from hireos.config.settings import settings

logger = structlog.get_logger()


class WorkflowHooks:
    """Posts candidate transitions to WORKFLOW_WEBHOOK_URL when configured."""

    def __init__(self, url: Optional[str] = None, timeout: float | None = None):
        self.url = url if url is not None else settings.WORKFLOW_WEBHOOK_URL
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    async def candidate_status_changed(
        self,
        account_id: int,
        candidate_id: int,
        previous_status: Optional[str],
        new_status: str,
        actor_user_id: Optional[int] = None,
    ) -> dict[str, Any]:
        if not self.url:
            return {"skipped": True}

        payload = {
            "event": "candidate_status_changed",
            "accountId": account_id,
            "candidateId": candidate_id,
            "previousStatus": previous_status,
            "newStatus": new_status,
            "actorUserId": actor_user_id,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()

        logger.info(
            "Workflow hook delivered",
            candidate_id=candidate_id,
            new_status=new_status,
            status_code=response.status_code,
        )
        return {"statusCode": response.status_code}
