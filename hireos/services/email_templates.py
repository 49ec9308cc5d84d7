"""Email template resolution and rendering.

Templates use {{ placeholder }} markers drawn from a closed field set.
Every value is HTML-escaped before substitution, and unknown or unset
placeholders render as empty strings so no literal marker survives.
"""

import html
import re
from dataclasses import dataclass, fields
from typing import Optional

from sqlalchemy.orm import Session

from hireos.config.settings import settings
from hireos.models import EmailTemplate

PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


@dataclass(frozen=True)
class TemplateFields:
    """Closed set of values a template may reference."""

    candidateName: str = ""
    jobTitle: str = "the position"
    senderName: str = "Team Member"
    companyName: str = ""
    calendarLink: str = ""
    contractLink: str = ""
    acceptanceUrl: str = ""
    onboardingLink: str = ""
    assessmentLink: str = ""

    @classmethod
    def build(
        cls,
        candidate_name: str,
        job_title: Optional[str] = None,
        sender_name: Optional[str] = None,
        **links: str,
    ) -> "TemplateFields":
        """Build fields, applying defaults for missing job title and sender."""
        return cls(
            candidateName=candidate_name or "",
            jobTitle=job_title or "the position",
            senderName=sender_name or "Team Member",
            companyName=settings.COMPANY_NAME,
            **{k: v or "" for k, v in links.items()},
        )

    def as_dict(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    body_html: str


DEFAULT_TEMPLATES: dict[str, tuple[str, str]] = {
    "interview": (
        "{{candidateName}}, Let's Discuss Your Fit for Our {{jobTitle}} Position",
        """<p>Hi {{candidateName}},</p>

<p>It's {{senderName}} from {{companyName}}. I came across your profile and would like to chat about your background and how you might fit in our <b>{{jobTitle}}</b> position.</p>

<p>Feel free to grab a time on my calendar when you're available:<br>
<a href="{{calendarLink}}">Schedule your interview here</a></p>

<p>Looking forward to connecting!</p>

<p>Thanks,<br>
{{senderName}}<br>
{{companyName}}</p>""",
    ),
    "offer": (
        "Excited to Offer You the {{jobTitle}} Position",
        """<p>Hi {{candidateName}},</p>

<p>Great news! We'd love to bring you on board for the {{jobTitle}} position at {{companyName}}. After reviewing your experience, we're confident you'll make a strong impact on our team.</p>

<p>Here's the link to your engagement contract: <a href="{{contractLink}}">View Contract</a></p>

<p>When you're ready, please confirm your decision here: <a href="{{acceptanceUrl}}">Review and Respond to Offer</a></p>

<p>If anything's unclear or you'd like to chat, don't hesitate to reach out.</p>

<p>Best regards,<br>
{{senderName}}<br>
{{companyName}}</p>""",
    ),
    "rejection": (
        "Update on Your {{jobTitle}} Application",
        """<p>Hi {{candidateName}},</p>

<p>Thanks for taking the time to interview for the {{jobTitle}} role with us. I really enjoyed learning about your background and experience.</p>

<p>After careful consideration, we've decided to move forward with another candidate for this position.</p>

<p>I'd love to keep you in mind for future opportunities at {{companyName}}. Feel free to stay connected, and I'll reach out if anything opens up that matches your background.</p>

<p>Best regards,<br>
{{senderName}}<br>
{{companyName}}</p>""",
    ),
    "talent_pool": (
        "Thank you for your application to {{jobTitle}}",
        """<p>Hi {{candidateName}},</p>

<p>Thank you for your interest in the {{jobTitle}} position at {{companyName}}.</p>

<p>While we've decided to move forward with other candidates for this specific role, we were impressed with your background and would like to keep you in our talent pool for future opportunities.</p>

<p>We'll reach out if a position opens up that matches your skills and experience.</p>

<p>Best regards,<br>
{{senderName}}<br>
{{companyName}}</p>""",
    ),
    "onboarding": (
        "Welcome to {{companyName}}!",
        """<p>Hi {{candidateName}},</p>

<p>Welcome to {{companyName}}! We're thrilled to have you join our team as {{jobTitle}}.</p>

<p>To get started, please schedule your onboarding call here: <a href="{{onboardingLink}}">Schedule Onboarding</a></p>

<p>If you have any questions before your start date, don't hesitate to reach out.</p>

<p>Best regards,<br>
{{senderName}}<br>
{{companyName}}</p>""",
    ),
    "assessment": (
        "Your Assessment for {{jobTitle}}",
        """<p>Hi {{candidateName}},</p>

<p>Thank you for your interest in the {{jobTitle}} position at {{companyName}}!</p>

<p>As part of our hiring process, we'd like you to complete a brief assessment.</p>

<p>Please complete the assessment here: <a href="{{assessmentLink}}">Start Assessment</a></p>

<p>Best regards,<br>
{{senderName}}<br>
{{companyName}}</p>""",
    ),
}


def substitute(template: str, values: dict[str, str]) -> str:
    """Replace every placeholder with its escaped value, or with '' if unknown."""
    def replace(match: re.Match) -> str:
        value = values.get(match.group(1))
        return html.escape(value) if value else ""

    return PLACEHOLDER.sub(replace, template or "")


def render_template(subject: str, body_html: str, template_fields: TemplateFields) -> RenderedEmail:
    """Render a subject/body pair against a closed field set."""
    values = template_fields.as_dict()
    return RenderedEmail(
        subject=substitute(subject, values),
        body_html=substitute(body_html, values),
    )


def resolve_template(
    db: Session,
    account_id: int,
    kind: str,
    user_id: Optional[int] = None,
) -> tuple[str, str]:
    """
    Pick the subject/body for a template kind.

    Order: the user's active template, the account default, the built-in.
    """
    query = db.query(EmailTemplate).filter(
        EmailTemplate.account_id == account_id,
        EmailTemplate.template_type == kind,
        EmailTemplate.is_active == True,  # noqa: E712
    )

    if user_id is not None:
        personal = (
            query.filter(EmailTemplate.user_id == user_id)
            .order_by(EmailTemplate.id.desc())
            .first()
        )
        if personal:
            return personal.subject, personal.body_html

    account_default = (
        query.filter(EmailTemplate.is_default == True)  # noqa: E712
        .order_by(EmailTemplate.id.desc())
        .first()
    )
    if account_default:
        return account_default.subject, account_default.body_html

    return DEFAULT_TEMPLATES[kind]


def render_for(
    db: Session,
    account_id: int,
    kind: str,
    template_fields: TemplateFields,
    user_id: Optional[int] = None,
) -> RenderedEmail:
    """Resolve and render a template in one step."""
    subject, body = resolve_template(db, account_id, kind, user_id)
    return render_template(subject, body, template_fields)
