import json

from hireos.models import ActivityLog, Candidate, InAppNotification, NotificationQueueItem, Offer


def send_offer(client, headers, candidate_id, **body):
    response = client.post(f"/api/candidates/{candidate_id}/send-offer", json=body or None, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_send_offer(client, admin_headers, make_candidate, db, ctx):
    candidate = make_candidate()

    body = send_offer(client, admin_headers, candidate["id"], compensation="$140k", offerType="Full-time")
    assert body["candidate"]["status"] == "95_offer_sent"
    assert body["candidate"]["finalDecisionStatus"] == "offer"
    offer = body["offer"]
    assert offer["status"] == "sent"
    assert offer["compensation"] == "$140k"
    assert offer["contractUrl"].startswith(f"https://contracts.hireos.app/{candidate['id']}-")
    assert offer["approvedById"] is not None

    html = ctx.email.sent[0]["html"]
    assert f"/accept-offer/{offer['acceptanceToken']}" in html
    assert offer["contractUrl"] in html

    db.expire_all()
    assert db.query(InAppNotification).filter_by(type="offer_sent").count() == 1


def test_public_offer_view_hides_internal_fields(client, admin_headers, make_candidate):
    candidate = make_candidate()
    token = send_offer(client, admin_headers, candidate["id"])["offer"]["acceptanceToken"]

    response = client.get(f"/api/offers/{token}")
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["candidate"] == {"name": "Jane Doe", "email": "jane@acme-mail.com"}
    assert body["job"] == {"title": "Backend Engineer", "type": "Full-time"}
    assert "acceptanceToken" not in body["offer"]
    assert "approvedById" not in body["offer"]


def test_unknown_token_is_not_found(client, seed):
    response = client.get("/api/offers/" + "0" * 64)
    assert response.status_code == 404

    response = client.post("/api/offers/" + "0" * 64 + "/respond", json={"action": "accept"})
    assert response.status_code == 404


def test_accept_is_final(client, admin_headers, make_candidate, db, ctx):
    candidate = make_candidate()
    token = send_offer(client, admin_headers, candidate["id"])["offer"]["acceptanceToken"]

    response = client.post(f"/api/offers/{token}/respond", json={"action": "accept"})
    assert response.status_code == 200, response.text
    assert response.json() == {"success": True, "message": "Offer accepted", "status": "accepted"}

    db.expire_all()
    stored = db.get(Candidate, candidate["id"])
    assert stored.status == "100_offer_accepted"
    assert stored.final_decision_status == "offer"
    offer = db.query(Offer).filter_by(acceptance_token=token).one()
    assert offer.responded_at is not None

    slack_rows = db.query(NotificationQueueItem).filter_by(type="slack").all()
    assert len(slack_rows) == 1
    payload = json.loads(slack_rows[0].payload)
    assert payload["channel"] == "onboarding"
    assert payload["event"] == "offer_accepted"

    onboarding = ctx.email.sent[-1]
    assert onboarding["subject"] == "Welcome to HireOS!"
    assert onboarding["reply_to"] == "ada@acme.io"

    activity = db.query(ActivityLog).filter_by(action="offer_accepted").one()
    assert activity.user_id is None
    assert json.loads(activity.details)["via"] == "public"

    # Terminal: a second response (accept or decline) is refused
    response = client.post(f"/api/offers/{token}/respond", json={"action": "accept"})
    assert response.status_code == 400
    response = client.post(f"/api/offers/{token}/respond", json={"action": "decline"})
    assert response.status_code == 400
    response = client.get(f"/api/offers/{token}")
    assert response.status_code == 400

    db.expire_all()
    assert db.get(Candidate, candidate["id"]).status == "100_offer_accepted"
    assert db.query(NotificationQueueItem).filter_by(type="slack").count() == 1


def test_decline_rejects_candidate(client, admin_headers, make_candidate, db):
    candidate = make_candidate()
    token = send_offer(client, admin_headers, candidate["id"])["offer"]["acceptanceToken"]

    response = client.post(f"/api/offers/{token}/respond", json={"action": "decline"})
    assert response.status_code == 200
    assert response.json()["status"] == "declined"

    db.expire_all()
    stored = db.get(Candidate, candidate["id"])
    assert stored.status == "200_rejected"
    assert stored.final_decision_status == "rejected"
    assert db.query(InAppNotification).filter_by(type="offer_rejected").count() == 1


def test_invalid_action_is_validation_error(client, admin_headers, make_candidate):
    candidate = make_candidate()
    token = send_offer(client, admin_headers, candidate["id"])["offer"]["acceptanceToken"]

    response = client.post(f"/api/offers/{token}/respond", json={"action": "maybe"})
    assert response.status_code == 422


def test_staff_accept(client, admin_headers, make_candidate, db):
    candidate = make_candidate()

    response = client.post(f"/api/candidates/{candidate['id']}/accept-offer", headers=admin_headers)
    assert response.status_code == 400

    send_offer(client, admin_headers, candidate["id"])
    response = client.post(f"/api/candidates/{candidate['id']}/accept-offer", headers=admin_headers)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["candidate"]["status"] == "100_offer_accepted"
    assert body["offer"]["status"] == "accepted"

    response = client.post(f"/api/candidates/{candidate['id']}/accept-offer", headers=admin_headers)
    assert response.status_code == 400

    db.expire_all()
    activity = db.query(ActivityLog).filter_by(action="offer_accepted").one()
    assert json.loads(activity.details)["via"] == "staff"


def test_offer_blocked_for_undeliverable_email(client, admin_headers, make_candidate, db):
    candidate = make_candidate(name="Pat Placeholder", email="test@nonexistent.fake")

    response = client.post(f"/api/candidates/{candidate['id']}/send-offer", headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["errorType"] == "non_existent_email"

    db.expire_all()
    assert db.query(Offer).count() == 0
