import json
from datetime import timedelta

from hireos.config.settings import settings
from hireos.models import ActivityLog, Candidate, InAppNotification, Job, NotificationQueueItem
from hireos.models.base import utcnow


def test_create_candidate(client, admin_headers, seed, db, ctx):
    response = client.post(
        "/api/candidates",
        json={
            "name": "Jane Doe",
            "email": "jane@acme-mail.com",
            "jobId": seed["job"],
            "skills": ["Python", "Postgres"],
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["status"] == "00_application_submitted"
    assert body["finalDecisionStatus"] is None
    assert body["accountId"] == seed["acme"]
    assert body["skills"] == ["Python", "Postgres"]

    db.expire_all()
    queued = db.query(NotificationQueueItem).filter_by(account_id=seed["acme"]).all()
    assert len(queued) == 1
    payload = json.loads(queued[0].payload)
    assert payload["templateType"] == "assessment"
    assert payload["context"]["assessmentLink"] == "https://app.hipeople.io/assess/backend"

    notification = db.query(InAppNotification).filter_by(type="new_application").one()
    assert "Jane Doe" in notification.message

    activity = db.query(ActivityLog).filter_by(action="created", entity_id=body["id"]).one()
    assert json.loads(activity.details)["effects"] == []

    # No outbound email at creation
    assert ctx.email.sent == []


def test_duplicate_candidate_is_conflict(client, admin_headers, make_candidate):
    first = make_candidate(name="Jane Doe", email="jane@acme-mail.com")

    response = client.post(
        "/api/candidates",
        json={"name": "Jane Doe", "email": "JANE@acme-mail.com"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    body = response.json()
    assert body["existingCandidateId"] == first["id"]
    assert body["error"]["code"] == "CONFLICT"


def test_same_email_different_name_is_allowed(make_candidate):
    make_candidate(name="Jane Doe", email="jane@acme-mail.com")
    make_candidate(name="Jane Smith", email="jane@acme-mail.com")


def test_duplicate_check_is_per_account(client, seed, make_candidate, outsider_headers):
    make_candidate(name="Jane Doe", email="jane@acme-mail.com")

    response = client.post(
        "/api/candidates",
        json={"name": "Jane Doe", "email": "jane@acme-mail.com", "jobId": seed["globex_job"]},
        headers=outsider_headers,
    )
    assert response.status_code == 201


def test_other_account_cannot_read_candidate(client, make_candidate, outsider_headers):
    candidate = make_candidate()

    response = client.get(f"/api/candidates/{candidate['id']}", headers=outsider_headers)
    assert response.status_code == 404

    response = client.post(f"/api/candidates/{candidate['id']}/reject", headers=outsider_headers)
    assert response.status_code == 404


def test_account_header_for_foreign_account_is_forbidden(client, seed, outsider_headers):
    headers = {**outsider_headers, "X-Account-Id": str(seed["acme"])}
    response = client.get("/api/candidates", headers=headers)
    assert response.status_code == 403


def test_requests_without_token_are_unauthorized(client, seed):
    response = client.get("/api/candidates")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_job_from_other_account_is_not_found(client, seed, admin_headers):
    response = client.post(
        "/api/candidates",
        json={"name": "Jane Doe", "email": "jane@acme-mail.com", "jobId": seed["globex_job"]},
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_closed_job_rejects_applications(client, seed, admin_headers):
    response = client.post(f"/api/jobs/{seed['job']}/close", headers=admin_headers)
    assert response.status_code == 200, response.text

    response = client.post(
        "/api/candidates",
        json={"name": "Jane Doe", "email": "jane@acme-mail.com", "jobId": seed["job"]},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_list_filters_by_status(client, admin_headers, make_candidate):
    jane = make_candidate(name="Jane Doe", email="jane@acme-mail.com")
    make_candidate(name="Raj Patel", email="raj@acme-mail.com")
    client.post(f"/api/candidates/{jane['id']}/reject", headers=admin_headers)

    response = client.get("/api/candidates", params={"status": "200_rejected"}, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["id"] == jane["id"]

    response = client.get("/api/candidates", headers=admin_headers)
    assert response.json()["meta"]["total"] == 2


def test_candidate_without_job_has_no_assessment_queued(client, admin_headers, db):
    response = client.post(
        "/api/candidates",
        json={"name": "Lee Chen", "email": "lee@acme-mail.com"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    db.expire_all()
    assert db.query(NotificationQueueItem).count() == 0
    assert db.query(Candidate).filter_by(email="lee@acme-mail.com").one().job_id is None


def test_assessment_is_delayed_unless_express_review(client, admin_headers, seed, db):
    express = Job(account_id=seed["acme"], title="Data Engineer", status="active", express_review=True)
    db.add(express)
    db.commit()

    before = utcnow()
    client.post(
        "/api/candidates",
        json={"name": "Jane Doe", "email": "jane@acme-mail.com", "jobId": seed["job"]},
        headers=admin_headers,
    )
    client.post(
        "/api/candidates",
        json={"name": "Raj Patel", "email": "raj@acme-mail.com", "jobId": express.id},
        headers=admin_headers,
    )
    after = utcnow()

    db.expire_all()
    delayed, immediate = db.query(NotificationQueueItem).order_by(NotificationQueueItem.id).all()
    delay = timedelta(hours=settings.ASSESSMENT_DELAY_HOURS)
    assert before + delay <= delayed.process_after <= after + delay
    assert before <= immediate.process_after <= after
    assert immediate.status == "pending"
