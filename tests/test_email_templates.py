from hireos.models import EmailTemplate
from hireos.services.email_templates import (
    DEFAULT_TEMPLATES,
    TemplateFields,
    render_for,
    render_template,
    substitute,
)


def test_values_are_html_escaped():
    rendered = render_template(
        "Hello {{candidateName}}",
        "<p>{{candidateName}}</p>",
        TemplateFields.build("O'Brien <test>", "Engineer", "Ada"),
    )
    assert rendered.subject == "Hello O&#x27;Brien &lt;test&gt;"
    assert "<p>O&#x27;Brien &lt;test&gt;</p>" == rendered.body_html


def test_unknown_and_unset_placeholders_render_empty():
    result = substitute("{{ unknownField }}|{{calendarLink}}|{{jobTitle}}", TemplateFields.build("Jane").as_dict())
    assert result == "||the position"
    assert "{{" not in result


def test_defaults_for_missing_job_and_sender():
    fields = TemplateFields.build("Jane", None, None)
    assert fields.jobTitle == "the position"
    assert fields.senderName == "Team Member"


def test_every_builtin_template_renders_without_markers():
    fields = TemplateFields.build(
        "Jane",
        "Backend Engineer",
        "Ada",
        calendarLink="https://calendly.com/ada",
        contractLink="https://contracts.hireos.app/1.pdf",
        acceptanceUrl="https://app.hireos.app/accept-offer/abc",
        onboardingLink="https://calendly.com/ada/onboarding",
        assessmentLink="https://app.hipeople.io/a",
    )
    for subject, body in DEFAULT_TEMPLATES.values():
        rendered = render_template(subject, body, fields)
        assert "{{" not in rendered.subject
        assert "{{" not in rendered.body_html


def test_resolution_prefers_personal_then_account_default(db, seed):
    fields = TemplateFields.build("Jane", "Backend Engineer", "Ada")

    builtin = render_for(db, seed["acme"], "rejection", fields, user_id=seed["admin"])
    assert builtin.subject == "Update on Your Backend Engineer Application"

    db.add(EmailTemplate(
        account_id=seed["acme"],
        name="Account rejection",
        template_type="rejection",
        subject="Account: {{jobTitle}}",
        body_html="<p>account</p>",
        is_default=True,
    ))
    db.commit()
    assert render_for(db, seed["acme"], "rejection", fields, user_id=seed["admin"]).subject == "Account: Backend Engineer"

    db.add(EmailTemplate(
        account_id=seed["acme"],
        user_id=seed["admin"],
        name="My rejection",
        template_type="rejection",
        subject="Personal: {{candidateName}}",
        body_html="<p>personal</p>",
    ))
    db.commit()
    assert render_for(db, seed["acme"], "rejection", fields, user_id=seed["admin"]).subject == "Personal: Jane"
    # Other users still get the account default
    assert render_for(db, seed["acme"], "rejection", fields, user_id=seed["manager"]).subject == "Account: Backend Engineer"
