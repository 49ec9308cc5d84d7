"""Per-account platform integration endpoints (credentials are write-only)."""

import json

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.middleware.error_handler import BadRequestError
from hireos.models import PLATFORM_TYPES, PlatformIntegration
from hireos.schemas.integrations import IntegrationResponse, IntegrationUpsert
from hireos.services.activity import log_activity
from hireos.services.encryption import encrypt_json
from hireos.services.platforms import get_integration
from hireos.services.rbac import require_admin
from hireos.services.tenant import TenantContext, get_tenant

logger = structlog.get_logger()
router = APIRouter()


def _to_response(integration: PlatformIntegration) -> IntegrationResponse:
    response = IntegrationResponse.model_validate(integration)
    response.has_credentials = bool(integration.credentials)
    return response


@router.get("", response_model=list[IntegrationResponse])
async def list_integrations(
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """List the account's integrations without credentials."""
    integrations = (
        db.query(PlatformIntegration)
        .filter(PlatformIntegration.account_id == tenant.account_id)
        .order_by(PlatformIntegration.platform_id)
        .all()
    )
    return [_to_response(i) for i in integrations]


@router.put("/{platform_id}", response_model=IntegrationResponse)
async def upsert_integration(
    platform_id: str,
    data: IntegrationUpsert,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_admin),
):
    """Create or replace an integration. Omitted credentials keep the stored ones."""
    if platform_id not in PLATFORM_TYPES:
        raise BadRequestError(
            f"Unknown platform: {platform_id}",
            details={"supported": sorted(PLATFORM_TYPES)},
        )

    integration = get_integration(db, tenant.account_id, platform_id)
    if integration is None:
        integration = PlatformIntegration(
            account_id=tenant.account_id,
            platform_id=platform_id,
            platform_type=PLATFORM_TYPES[platform_id],
        )
        db.add(integration)

    if data.credentials is not None:
        integration.credentials = encrypt_json(data.credentials)
    if data.settings is not None:
        integration.settings = json.dumps(data.settings)
    integration.is_enabled = data.is_enabled
    integration.status = "connected"
    integration.last_error = None
    integration.last_error_at = None

    db.flush()
    log_activity(
        db,
        tenant.account_id,
        "integration_updated",
        "integration",
        integration.id,
        tenant.user_id,
        {"platformId": platform_id, "credentialsChanged": data.credentials is not None},
    )
    db.commit()
    db.refresh(integration)

    logger.info("Integration saved", platform_id=platform_id, account_id=tenant.account_id)
    return _to_response(integration)
