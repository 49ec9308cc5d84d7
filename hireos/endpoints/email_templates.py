"""Email template management endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.middleware.error_handler import BadRequestError, ForbiddenError, NotFoundError
from hireos.models import EmailTemplate
from hireos.schemas.base import PaginatedResponse, PaginationMeta
from hireos.schemas.email_templates import (
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
)
from hireos.services.rbac import is_privileged
from hireos.services.tenant import TenantContext, get_tenant

logger = structlog.get_logger()
router = APIRouter()


def _visible(db: Session, tenant: TenantContext):
    """Account-wide templates plus the caller's personal ones."""
    return db.query(EmailTemplate).filter(
        EmailTemplate.account_id == tenant.account_id,
        or_(EmailTemplate.user_id.is_(None), EmailTemplate.user_id == tenant.user_id),
    )


def _get_template(db: Session, template_id: int, tenant: TenantContext) -> EmailTemplate:
    template = _visible(db, tenant).filter(EmailTemplate.id == template_id).first()
    if not template:
        raise NotFoundError("Email template", template_id)
    return template


def _check_can_edit(template: EmailTemplate, tenant: TenantContext) -> None:
    if template.user_id is None and not is_privileged(tenant.role):
        raise ForbiddenError("Only admin, CEO, COO or director roles can edit account templates")


def _clear_defaults(db: Session, account_id: int, template_type: str, keep_id: Optional[int] = None) -> None:
    query = db.query(EmailTemplate).filter(
        EmailTemplate.account_id == account_id,
        EmailTemplate.template_type == template_type,
        EmailTemplate.is_default == True,  # noqa: E712
    )
    if keep_id is not None:
        query = query.filter(EmailTemplate.id != keep_id)
    query.update({"is_default": False}, synchronize_session=False)


@router.get("", response_model=PaginatedResponse[EmailTemplateResponse])
async def list_email_templates(
    template_type: Optional[str] = Query(None, alias="templateType"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """List account templates and the caller's personal templates."""
    query = _visible(db, tenant)

    if template_type:
        query = query.filter(EmailTemplate.template_type == template_type)
    if is_active is not None:
        query = query.filter(EmailTemplate.is_active == is_active)

    total = query.count()
    templates = (
        query.order_by(EmailTemplate.template_type, EmailTemplate.name)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return PaginatedResponse(
        data=[EmailTemplateResponse.model_validate(t) for t in templates],
        meta=PaginationMeta(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=(total + per_page - 1) // per_page,
        ),
    )


@router.get("/{template_id}", response_model=EmailTemplateResponse)
async def get_email_template(
    template_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return _get_template(db, template_id, tenant)


@router.post("", response_model=EmailTemplateResponse, status_code=201)
async def create_email_template(
    data: EmailTemplateCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """
    Create a template.

    A default template is always account-wide and replaces the previous
    default of its kind.
    """
    personal = data.personal and not data.is_default
    if not personal and not is_privileged(tenant.role):
        raise ForbiddenError("Only admin, CEO, COO or director roles can create account templates")

    if data.is_default:
        _clear_defaults(db, tenant.account_id, data.template_type)

    template = EmailTemplate(
        account_id=tenant.account_id,
        user_id=tenant.user_id if personal else None,
        name=data.name,
        template_type=data.template_type,
        subject=data.subject,
        body_html=data.body_html,
        is_active=data.is_active,
        is_default=data.is_default,
    )
    db.add(template)
    db.commit()
    db.refresh(template)

    logger.info("Email template created", id=template.id, name=template.name, personal=personal)
    return template


@router.patch("/{template_id}", response_model=EmailTemplateResponse)
async def update_email_template(
    template_id: int,
    data: EmailTemplateUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """Update an email template."""
    template = _get_template(db, template_id, tenant)
    _check_can_edit(template, tenant)

    if data.is_default:
        if template.user_id is not None:
            raise BadRequestError("Personal templates cannot be the account default")
        _clear_defaults(db, tenant.account_id, template.template_type, keep_id=template.id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(template, field, value)

    db.commit()
    db.refresh(template)

    logger.info("Email template updated", id=template.id)
    return template


@router.delete("/{template_id}", status_code=204)
async def delete_email_template(
    template_id: int,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    """Delete an email template; the built-in wording applies again if none remains."""
    template = _get_template(db, template_id, tenant)
    _check_can_edit(template, tenant)

    db.delete(template)
    db.commit()
    logger.info("Email template deleted", id=template_id)
