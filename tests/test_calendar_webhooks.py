from datetime import datetime

from hireos.models import AccountMember, ActivityLog, Candidate, Interview


def calendly(event, email, start_time=None):
    payload = {"email": email}
    if start_time:
        payload["scheduled_event"] = {"start_time": start_time}
    return {"event": event, "payload": payload}


def test_calendly_booking_schedules_interview(client, make_candidate, db):
    candidate = make_candidate()

    response = client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.created", "Jane@Acme-Mail.com", "2026-11-03T16:00:00Z"),
    )
    assert response.status_code == 200, response.text
    assert response.json()["processed"] is True

    db.expire_all()
    stored = db.get(Candidate, candidate["id"])
    assert stored.status == "60_1st_interview_scheduled"
    assert stored.last_interview_date == datetime(2026, 11, 3, 16, 0)

    interview = db.query(Interview).filter_by(candidate_id=candidate["id"]).one()
    assert interview.status == "scheduled"
    assert interview.scheduled_date == datetime(2026, 11, 3, 16, 0)
    assert "calendly" in interview.notes


def test_booking_after_invite_updates_the_same_interview(client, admin_headers, make_candidate, db):
    candidate = make_candidate()
    client.post(f"/api/candidates/{candidate['id']}/invite-to-interview", headers=admin_headers)

    response = client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.created", "jane@acme-mail.com", "2026-11-03T16:00:00Z"),
    )
    assert response.json()["processed"] is True

    db.expire_all()
    interviews = db.query(Interview).filter_by(candidate_id=candidate["id"]).all()
    assert len(interviews) == 1
    assert interviews[0].scheduled_date == datetime(2026, 11, 3, 16, 0)


def test_cancellation_keeps_candidate_status(client, make_candidate, db):
    candidate = make_candidate()
    client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.created", "jane@acme-mail.com", "2026-11-03T16:00:00Z"),
    )

    response = client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.canceled", "jane@acme-mail.com"),
    )
    assert response.status_code == 200
    assert response.json()["processed"] is True

    db.expire_all()
    interview = db.query(Interview).filter_by(candidate_id=candidate["id"]).one()
    assert interview.status == "cancelled"
    assert db.get(Candidate, candidate["id"]).status == "60_1st_interview_scheduled"
    assert db.query(ActivityLog).filter_by(action="interview_cancelled").count() == 1


def test_reschedule_moves_active_interview(client, make_candidate, db):
    candidate = make_candidate()
    client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.created", "jane@acme-mail.com", "2026-11-03T16:00:00Z"),
    )

    response = client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.updated", "jane@acme-mail.com", "2026-11-05T09:30:00+01:00"),
    )
    assert response.json()["processed"] is True

    db.expire_all()
    interview = db.query(Interview).filter_by(candidate_id=candidate["id"]).one()
    assert interview.scheduled_date == datetime(2026, 11, 5, 8, 30)
    assert "Rescheduled via calendly" in interview.notes


def test_calcom_is_detected_from_payload(client, make_candidate, db):
    candidate = make_candidate()

    response = client.post(
        "/api/webhooks/calendar",
        json={
            "triggerEvent": "BOOKING_CREATED",
            "payload": {
                "attendee": {"email": "jane@acme-mail.com", "name": "Jane Doe"},
                "startTime": "2026-11-04T10:00:00Z",
            },
        },
    )
    assert response.status_code == 200, response.text
    assert response.json()["processed"] is True

    db.expire_all()
    assert db.get(Candidate, candidate["id"]).status == "60_1st_interview_scheduled"


def test_google_event_uses_first_external_attendee(client, make_candidate, db):
    candidate = make_candidate()

    response = client.post(
        "/api/webhooks/calendar/google",
        json={
            "kind": "calendar#event",
            "status": "confirmed",
            "start": {"dateTime": "2026-11-06T14:00:00Z"},
            "attendees": [
                {"email": "ada@acme.io", "organizer": True},
                {"email": "jane@acme-mail.com"},
            ],
        },
    )
    assert response.json()["processed"] is True

    db.expire_all()
    assert db.get(Candidate, candidate["id"]).last_interview_date == datetime(2026, 11, 6, 14, 0)


def test_unknown_email_is_acknowledged_without_changes(client, make_candidate, db):
    make_candidate()

    response = client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.created", "someone.else@globex.io", "2026-11-03T16:00:00Z"),
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "processed": False, "message": "No matching candidate"}

    db.expire_all()
    assert db.query(Interview).count() == 0


def test_unhandled_event_type_is_ignored(client, make_candidate):
    make_candidate()

    response = client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("routing_form_submission.created", "jane@acme-mail.com"),
    )
    assert response.status_code == 200
    assert response.json()["processed"] is False


def test_malformed_payloads_are_bad_requests(client, seed):
    response = client.post(
        "/api/webhooks/calendar/calendly",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400

    response = client.post("/api/webhooks/calendar", json={"hello": "world"})
    assert response.status_code == 400
    assert "supported" in response.json()["error"]["details"]

    response = client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.created", "jane@acme-mail.com", "next tuesday"),
    )
    assert response.status_code == 400


def test_booking_notifies_slack_and_mirrors_to_google(client, admin_headers, make_candidate, ctx):
    response = client.put(
        "/api/integrations/slack",
        json={
            "credentials": {"webhookUrl": "https://hooks.slack.com/services/T0/B0/x"},
            "settings": {"events": ["interview_scheduled"]},
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    response = client.put(
        "/api/integrations/google-calendar",
        json={
            "credentials": {"accessToken": "ya29.token", "calendarId": "primary"},
            "settings": {"crossSync": True},
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text

    make_candidate(skills=["Python"])
    response = client.post(
        "/api/webhooks/calendar/calendly",
        json=calendly("invitee.created", "jane@acme-mail.com", "2026-11-03T16:00:00Z"),
    )
    assert response.json()["processed"] is True

    assert len(ctx.slack.messages) == 1
    message = ctx.slack.messages[0]
    assert message["webhook_url"] == "https://hooks.slack.com/services/T0/B0/x"
    assert message["text"].startswith("📅 Interview scheduled: Jane Doe (Python)")

    assert len(ctx.calendar.events) == 1
    assert ctx.calendar.events[0]["attendee"] == "jane@acme-mail.com"
    assert ctx.calendar.events[0]["summary"] == "Interview: Jane Doe (Backend Engineer)"


def test_booking_for_member_of_several_accounts_finds_candidate(client, seed, outsider_headers, db):
    db.add(AccountMember(account_id=seed["globex"], user_id=seed["admin"], role="admin"))
    db.commit()

    response = client.post(
        "/api/candidates",
        json={"name": "Gil Globex", "email": "gil@globex-mail.com", "jobId": seed["globex_job"]},
        headers=outsider_headers,
    )
    assert response.status_code == 201, response.text
    candidate_id = response.json()["id"]

    response = client.post(
        "/api/webhooks/calendar/calendly",
        params={"userId": seed["admin"]},
        json=calendly("invitee.created", "gil@globex-mail.com", "2026-11-03T16:00:00Z"),
    )
    assert response.status_code == 200
    assert response.json()["processed"] is True

    db.expire_all()
    assert db.get(Candidate, candidate_id).status == "60_1st_interview_scheduled"
    interview = db.query(Interview).filter_by(candidate_id=candidate_id).one()
    assert interview.account_id == seed["globex"]
    assert interview.interviewer_id == seed["admin"]
