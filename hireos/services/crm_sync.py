"""CRM sync fan-out (GHL, Airtable, Google Sheets).

Each connected CRM gets its own effect so one failing integration never
blocks another or the primary write.
"""

from typing import Any, Optional

import structlog
from sqlalchemy.orm import Session

from hireos.integrations.airtable import AirtableClient
from hireos.integrations.ghl import GHLClient
from hireos.integrations.google_sheets import GoogleSheetsClient
from hireos.models import CRM_PLATFORMS, Candidate, Job, PlatformIntegration
from hireos.models.base import utcnow
from hireos.schemas.base import safe_json_loads
from hireos.services.effects import Effect, EffectReport
from hireos.services.encryption import decrypt_json
from hireos.services.platforms import integration_settings

logger = structlog.get_logger()

CRM_EFFECT_PREFIX = "crm:"


def candidate_snapshot(candidate: Candidate, job: Optional[Job]) -> dict[str, Any]:
    """Plain values pushed to CRMs, captured before effects run."""
    return {
        "name": candidate.name,
        "email": candidate.email,
        "phone": candidate.phone,
        "location": candidate.location,
        "status": candidate.status,
        "finalDecisionStatus": candidate.final_decision_status,
        "jobTitle": job.title if job else None,
        "matchScore": candidate.match_score,
        "skills": safe_json_loads(candidate.skills, []),
        "ghlContactId": candidate.ghl_contact_id,
    }


class CRMSync:
    """Builds per-integration sync effects for a candidate."""

    def __init__(
        self,
        ghl: Optional[GHLClient] = None,
        airtable: Optional[AirtableClient] = None,
        sheets: Optional[GoogleSheetsClient] = None,
    ):
        self.ghl = ghl or GHLClient()
        self.airtable = airtable or AirtableClient()
        self.sheets = sheets or GoogleSheetsClient()

    def effects_for(self, db: Session, candidate: Candidate, job: Optional[Job] = None) -> list[Effect]:
        """One effect per enabled, connected CRM integration of the candidate's account."""
        integrations = (
            db.query(PlatformIntegration)
            .filter(
                PlatformIntegration.account_id == candidate.account_id,
                PlatformIntegration.platform_id.in_(CRM_PLATFORMS),
                PlatformIntegration.is_enabled == True,  # noqa: E712
                PlatformIntegration.status == "connected",
            )
            .order_by(PlatformIntegration.id)
            .all()
        )
        snapshot = candidate_snapshot(candidate, job)
        return [self._effect(integration, snapshot) for integration in integrations]

    def _effect(self, integration: PlatformIntegration, snapshot: dict[str, Any]) -> Effect:
        platform = integration.platform_id
        encrypted = integration.credentials
        settings = integration_settings(integration)

        async def sync() -> dict[str, Any]:
            credentials = decrypt_json(encrypted)
            if platform == "ghl":
                contact_id = await self.ghl.sync_contact(
                    credentials,
                    {
                        "name": snapshot["name"],
                        "email": snapshot["email"],
                        "phone": snapshot["phone"],
                        "tags": [t for t in ("hireos", snapshot["status"], snapshot["jobTitle"]) if t],
                    },
                    contact_id=snapshot["ghlContactId"],
                )
                return {"ghlContactId": contact_id}
            if platform == "airtable":
                record_id = await self.airtable.upsert_record(
                    credentials,
                    {
                        "Name": snapshot["name"],
                        "Email": snapshot["email"],
                        "Phone": snapshot["phone"],
                        "Location": snapshot["location"],
                        "Status": snapshot["status"],
                        "Position": snapshot["jobTitle"],
                        "Match Score": snapshot["matchScore"],
                    },
                    table_name=settings.get("tableName", "Candidates"),
                )
                return {"recordId": record_id}
            if platform == "google-sheets":
                row = await self.sheets.upsert_row(
                    credentials,
                    snapshot,
                    sheet_name=settings.get("sheetName", "Candidates"),
                )
                return {"row": row}
            raise ValueError(f"Unsupported CRM platform: {platform}")

        return Effect(
            name=f"{CRM_EFFECT_PREFIX}{platform}",
            run=sync,
            meta={"integrationId": integration.id},
        )


def apply_crm_results(db: Session, candidate: Candidate, report: EffectReport) -> None:
    """Record sync outcomes on integrations and store a new GHL contact id."""
    for result in report.results:
        if not result.name.startswith(CRM_EFFECT_PREFIX):
            continue

        integration = db.get(PlatformIntegration, result.data.get("integrationId"))
        if integration is None:
            continue

        if result.ok:
            integration.last_sync_at = utcnow()
            integration.last_error = None
            contact_id = result.data.get("ghlContactId")
            if contact_id and candidate.ghl_contact_id != contact_id:
                candidate.ghl_contact_id = contact_id
                logger.info("GHL contact linked", candidate_id=candidate.id, contact_id=contact_id)
        else:
            integration.last_error = result.error
            integration.last_error_at = utcnow()
