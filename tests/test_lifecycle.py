import json

from sqlalchemy.exc import IntegrityError

from hireos.models import ActivityLog, Candidate, EmailLog, Interview, Offer
from hireos.services.lifecycle import is_active_interview_violation


def active_interviews(db, candidate_id):
    return (
        db.query(Interview)
        .filter(Interview.candidate_id == candidate_id, Interview.status.in_(("scheduled", "pending")))
        .all()
    )


class TestInviteToInterview:
    def test_invite_sends_calendar_link(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate()

        response = client.post(f"/api/candidates/{candidate['id']}/invite-to-interview", headers=admin_headers)
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "45_1st_interview_sent"

        assert len(ctx.email.sent) == 1
        sent = ctx.email.sent[0]
        assert sent["to"] == "jane@acme-mail.com"
        assert sent["reply_to"] == "ada@acme.io"
        assert "https://calendly.com/ada/30min" in sent["html"]
        assert "{{" not in sent["html"]

        db.expire_all()
        interviews = active_interviews(db, candidate["id"])
        assert len(interviews) == 1
        assert interviews[0].scheduled_date is None
        assert interviews[0].interviewer_id is not None

        log = db.query(EmailLog).filter_by(candidate_id=candidate["id"]).one()
        assert log.status == "sent"
        assert log.template_type == "interview"

    def test_repeated_invite_keeps_one_active_interview(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate()

        for _ in range(2):
            response = client.post(f"/api/candidates/{candidate['id']}/invite-to-interview", headers=admin_headers)
            assert response.status_code == 200, response.text

        db.expire_all()
        interviews = active_interviews(db, candidate["id"])
        assert len(interviews) == 1
        assert "re-sent" in interviews[0].notes
        assert len(ctx.email.sent) == 2

    def test_undeliverable_email_blocks_invite(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate(name="Pat Placeholder", email="test@nonexistent.fake")

        response = client.post(f"/api/candidates/{candidate['id']}/invite-to-interview", headers=admin_headers)
        assert response.status_code == 422
        body = response.json()
        assert body["errorType"] == "non_existent_email"
        assert body["error"]["details"]["field"] == "email"

        db.expire_all()
        assert db.get(Candidate, candidate["id"]).status == "00_application_submitted"
        assert db.query(Interview).filter_by(candidate_id=candidate["id"]).count() == 0
        assert ctx.email.sent == []

        log = db.query(EmailLog).filter_by(candidate_id=candidate["id"]).one()
        assert log.status == "rejected"
        assert db.query(ActivityLog).filter_by(action="email_validation_failed").count() == 1

    def test_missing_calendar_link_is_rejected(self, client, manager_headers, make_candidate, db, ctx):
        candidate = make_candidate()

        response = client.post(f"/api/candidates/{candidate['id']}/invite-to-interview", headers=manager_headers)
        assert response.status_code == 400
        assert response.json()["errorType"] == "missing_calendar_link"

        db.expire_all()
        assert db.get(Candidate, candidate["id"]).status == "00_application_submitted"
        assert db.query(Interview).count() == 0
        assert ctx.email.sent == []


class TestCloseOut:
    def test_reject(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate()

        response = client.post(f"/api/candidates/{candidate['id']}/reject", headers=admin_headers)
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["status"] == "200_rejected"
        assert body["finalDecisionStatus"] == "rejected"

        assert ctx.email.sent[0]["subject"] == "Update on Your Backend Engineer Application"
        assert ctx.workflow.transitions == [
            (candidate["id"], "00_application_submitted", "200_rejected"),
        ]

    def test_talent_pool(self, client, admin_headers, make_candidate, ctx):
        candidate = make_candidate()

        response = client.post(f"/api/candidates/{candidate['id']}/talent-pool", headers=admin_headers)
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["status"] == "90_talent_pool"
        assert body["finalDecisionStatus"] == "talent_pool"
        assert ctx.email.sent[0]["subject"] == "Thank you for your application to Backend Engineer"

    def test_leaving_interview_stage_cancels_interviews(self, client, admin_headers, make_candidate, db):
        candidate = make_candidate()
        response = client.post(
            "/api/interviews",
            json={"candidateId": candidate["id"], "scheduledDate": "2026-11-02T15:00:00"},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        interview_id = response.json()["id"]

        db.expire_all()
        assert db.get(Candidate, candidate["id"]).status == "60_1st_interview_scheduled"

        response = client.post(f"/api/candidates/{candidate['id']}/reject", headers=admin_headers)
        assert response.status_code == 200

        db.expire_all()
        interview = db.get(Interview, interview_id)
        assert interview.status == "cancelled"
        assert "Cancelled: rejected" in interview.notes
        assert active_interviews(db, candidate["id"]) == []

    def test_email_failure_does_not_fail_the_operation(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate()
        ctx.email.fail = True

        response = client.post(f"/api/candidates/{candidate['id']}/reject", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "200_rejected"

        db.expire_all()
        log = db.query(EmailLog).filter_by(candidate_id=candidate["id"]).one()
        assert log.status == "failed"
        assert "SES unavailable" in log.error

        activity = db.query(ActivityLog).filter_by(action="rejected", entity_id=candidate["id"]).one()
        effects = json.loads(activity.details)["effects"]
        email_result = next(e for e in effects if e["name"] == "email:rejection")
        assert email_result["ok"] is False


class TestUpdateCandidate:
    def test_contradicting_status_and_decision(self, client, admin_headers, make_candidate):
        candidate = make_candidate()

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"status": "200_rejected", "finalDecisionStatus": "talent_pool"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_legacy_offer_decision_issues_offer(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate()

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"finalDecisionStatus": "offer_sent"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["status"] == "95_offer_sent"
        assert body["finalDecisionStatus"] == "offer"

        db.expire_all()
        offer = db.query(Offer).filter_by(candidate_id=candidate["id"]).one()
        assert offer.status == "sent"
        assert len(offer.acceptance_token) == 64
        assert f"/accept-offer/{offer.acceptance_token}" in ctx.email.sent[0]["html"]

    def test_status_to_rejected_sets_decision(self, client, admin_headers, make_candidate):
        candidate = make_candidate()

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"status": "200_rejected"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["finalDecisionStatus"] == "rejected"

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"status": "30_assessment_completed"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["finalDecisionStatus"] is None

    def test_status_to_interview_sent_runs_invite(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate()

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"status": "45_1st_interview_sent"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text

        db.expire_all()
        assert len(active_interviews(db, candidate["id"])) == 1
        assert len(ctx.email.sent) == 1

    def test_evaluation_fields_need_privileged_role(self, client, admin_headers, manager_headers, make_candidate):
        candidate = make_candidate()

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"technicalProficiency": 4},
            headers=manager_headers,
        )
        assert response.status_code == 403

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"technicalProficiency": 4, "culturalFit": 5},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["technicalProficiency"] == 4
        assert response.json()["culturalFit"] == 5

    def test_plain_field_update_by_any_member(self, client, manager_headers, make_candidate, db):
        candidate = make_candidate()

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"phone": "+1 555 0100", "skills": ["Go"]},
            headers=manager_headers,
        )
        assert response.status_code == 200
        assert response.json()["phone"] == "+1 555 0100"
        assert response.json()["skills"] == ["Go"]
        assert response.json()["status"] == "00_application_submitted"

    def test_unknown_status_is_validation_error(self, client, admin_headers, make_candidate):
        candidate = make_candidate()

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"status": "50_unknown"},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_email_changed_to_placeholder_blocks_invite(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate()

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"email": "fake@acme-mail.com", "status": "45_1st_interview_sent"},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert response.json()["errorType"] == "non_existent_email"

        db.expire_all()
        stored = db.get(Candidate, candidate["id"])
        assert stored.email == "jane@acme-mail.com"
        assert stored.status == "00_application_submitted"
        assert active_interviews(db, candidate["id"]) == []
        assert ctx.email.sent == []

        log = db.query(EmailLog).filter_by(candidate_id=candidate["id"]).one()
        assert log.to_email == "fake@acme-mail.com"
        assert log.status == "rejected"

    def test_fixing_email_allows_invite_in_same_request(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate(name="Dana Lee", email="dummy@acme-mail.com")

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"email": "dana.lee@acme-mail.com", "status": "45_1st_interview_sent"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["email"] == "dana.lee@acme-mail.com"
        assert response.json()["status"] == "45_1st_interview_sent"
        assert [m["to"] for m in ctx.email.sent] == ["dana.lee@acme-mail.com"]

    def test_offer_status_checks_email_before_issuing(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate(name="Pat Placeholder", email="notreal@acme-mail.com")

        response = client.patch(
            f"/api/candidates/{candidate['id']}",
            json={"status": "95_offer_sent"},
            headers=admin_headers,
        )
        assert response.status_code == 422

        db.expire_all()
        assert db.query(Offer).filter_by(candidate_id=candidate["id"]).count() == 0
        assert db.get(Candidate, candidate["id"]).status == "00_application_submitted"
        assert ctx.email.sent == []

    def test_null_or_blank_identity_fields_are_rejected(self, client, admin_headers, make_candidate, db):
        candidate = make_candidate()

        for body in ({"name": None}, {"email": None}, {"name": "   "}):
            response = client.patch(f"/api/candidates/{candidate['id']}", json=body, headers=admin_headers)
            assert response.status_code == 422, body
            assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        db.expire_all()
        assert db.get(Candidate, candidate["id"]).name == "Jane Doe"

    def test_rename_into_existing_candidate_is_conflict(self, client, admin_headers, make_candidate):
        first = make_candidate(name="Jane Doe", email="jane@acme-mail.com")
        second = make_candidate(name="Jane Smith", email="jane@acme-mail.com")

        response = client.patch(
            f"/api/candidates/{second['id']}",
            json={"name": "Jane Doe"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["existingCandidateId"] == first["id"]

        response = client.patch(
            f"/api/candidates/{second['id']}",
            json={"name": "Jane Smith", "email": "JANE@acme-mail.com"},
            headers=admin_headers,
        )
        assert response.status_code == 200


class TestEmailGate:
    def test_reject_is_blocked_for_undeliverable_email(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate(name="Pat Placeholder", email="deleted@acme-mail.com")

        response = client.post(f"/api/candidates/{candidate['id']}/reject", headers=admin_headers)
        assert response.status_code == 422
        assert response.json()["errorType"] == "non_existent_email"

        db.expire_all()
        stored = db.get(Candidate, candidate["id"])
        assert stored.status == "00_application_submitted"
        assert stored.final_decision_status is None
        assert ctx.email.sent == []
        assert db.query(EmailLog).filter_by(candidate_id=candidate["id"], template_type="rejection").one().status == "rejected"

    def test_talent_pool_is_blocked_for_undeliverable_email(self, client, admin_headers, make_candidate, db, ctx):
        candidate = make_candidate(name="Pat Placeholder", email="test123@acme-mail.com")

        response = client.post(f"/api/candidates/{candidate['id']}/talent-pool", headers=admin_headers)
        assert response.status_code == 422

        db.expire_all()
        assert db.get(Candidate, candidate["id"]).status == "00_application_submitted"
        assert ctx.email.sent == []


def test_only_the_active_interview_index_reports_an_active_interview():
    def integrity_error(message):
        return IntegrityError("INSERT ...", {}, Exception(message))

    assert is_active_interview_violation(integrity_error("UNIQUE constraint failed: interviews.candidate_id"))
    assert is_active_interview_violation(integrity_error(
        'duplicate key value violates unique constraint "uq_interviews_active_candidate"'
    ))
    assert not is_active_interview_violation(integrity_error("NOT NULL constraint failed: candidates.name"))
