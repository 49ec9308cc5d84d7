import json

from hireos.models import ActivityLog, PlatformIntegration


class TestJobs:
    def test_create_then_approve(self, client, admin_headers, seed, db, ctx):
        response = client.post(
            "/api/jobs",
            json={"title": "Data Engineer", "type": "Contract", "expressReview": True},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        job = response.json()
        assert job["status"] == "draft"

        response = client.post(f"/api/jobs/{job['id']}/approve", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "active"
        assert response.json()["postedDate"] is not None

        db.expire_all()
        activity = db.query(ActivityLog).filter_by(action="approved", entity_id=job["id"]).one()
        assert json.loads(activity.details)["effects"] == []

    def test_closed_job_cannot_be_approved(self, client, admin_headers, seed):
        client.post(f"/api/jobs/{seed['job']}/close", headers=admin_headers)
        response = client.post(f"/api/jobs/{seed['job']}/approve", headers=admin_headers)
        assert response.status_code == 400

    def test_jobs_are_account_scoped(self, client, outsider_headers, seed):
        response = client.get(f"/api/jobs/{seed['job']}", headers=outsider_headers)
        assert response.status_code == 404


class TestProfile:
    def test_calendar_link_unblocks_invites(self, client, manager_headers, make_candidate):
        candidate = make_candidate()
        response = client.post(f"/api/candidates/{candidate['id']}/invite-to-interview", headers=manager_headers)
        assert response.status_code == 400

        response = client.patch(
            "/api/users/me",
            json={"calendarLink": "  https://cal.com/max  ", "calendarProvider": "cal.com"},
            headers=manager_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["calendarLink"] == "https://cal.com/max"
        assert body["role"] == "hiringManager"

        response = client.post(f"/api/candidates/{candidate['id']}/invite-to-interview", headers=manager_headers)
        assert response.status_code == 200, response.text

    def test_blank_calendar_link_is_cleared(self, client, admin_headers):
        response = client.patch("/api/users/me", json={"calendarLink": "   "}, headers=admin_headers)
        assert response.json()["calendarLink"] is None


class TestEmailTemplates:
    def test_personal_template_is_used_for_its_owner(self, client, admin_headers, make_candidate, ctx):
        response = client.post(
            "/api/email-templates",
            json={
                "name": "My invite",
                "templateType": "interview",
                "subject": "Chat about {{jobTitle}}?",
                "bodyHtml": "<p>Hi {{candidateName}}, book here: {{calendarLink}}</p>",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        assert response.json()["userId"] is not None

        candidate = make_candidate()
        client.post(f"/api/candidates/{candidate['id']}/invite-to-interview", headers=admin_headers)
        assert ctx.email.sent[0]["subject"] == "Chat about Backend Engineer?"
        assert ctx.email.sent[0]["html"] == "<p>Hi Jane Doe, book here: https://calendly.com/ada/30min</p>"

    def test_account_templates_need_privileged_role(self, client, manager_headers, admin_headers):
        body = {
            "name": "Account rejection",
            "templateType": "rejection",
            "subject": "Update",
            "bodyHtml": "<p>Thanks</p>",
            "personal": False,
        }
        response = client.post("/api/email-templates", json=body, headers=manager_headers)
        assert response.status_code == 403

        response = client.post("/api/email-templates", json=body, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["userId"] is None

    def test_new_default_replaces_previous(self, client, admin_headers):
        body = {"templateType": "offer", "subject": "Offer", "bodyHtml": "<p>Offer</p>", "isDefault": True}
        first = client.post("/api/email-templates", json={**body, "name": "One"}, headers=admin_headers).json()
        second = client.post("/api/email-templates", json={**body, "name": "Two"}, headers=admin_headers).json()
        assert second["isDefault"] is True
        assert second["userId"] is None

        refreshed = client.get(f"/api/email-templates/{first['id']}", headers=admin_headers).json()
        assert refreshed["isDefault"] is False

    def test_personal_templates_are_private(self, client, admin_headers, manager_headers):
        response = client.post(
            "/api/email-templates",
            json={"name": "Mine", "templateType": "offer", "subject": "S", "bodyHtml": "<p>B</p>"},
            headers=admin_headers,
        )
        template_id = response.json()["id"]

        assert client.get(f"/api/email-templates/{template_id}", headers=manager_headers).status_code == 404
        assert client.get("/api/email-templates", headers=manager_headers).json()["meta"]["total"] == 0


class TestIntegrations:
    def test_credentials_are_encrypted_and_never_returned(self, client, admin_headers, db):
        response = client.put(
            "/api/integrations/ghl",
            json={"credentials": {"apiKey": "pit-secret", "locationId": "loc-1"}},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["hasCredentials"] is True
        assert "credentials" not in body

        db.expire_all()
        stored = db.query(PlatformIntegration).filter_by(platform_id="ghl").one()
        assert "pit-secret" not in stored.credentials

        listed = client.get("/api/integrations", headers=admin_headers).json()
        assert [i["platformId"] for i in listed] == ["ghl"]

    def test_only_admins_configure_integrations(self, client, manager_headers):
        response = client.put("/api/integrations/slack", json={"settings": {}}, headers=manager_headers)
        assert response.status_code == 403

    def test_unknown_platform(self, client, admin_headers):
        response = client.put("/api/integrations/myspace", json={}, headers=admin_headers)
        assert response.status_code == 400


def test_health_is_public(client, seed):
    response = client.get("/health/live")
    assert response.status_code == 200

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"
    assert response.json()["encryption"] == "ok"
