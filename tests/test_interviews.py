from hireos.models import Candidate, Interview


def create_interview(client, headers, candidate_id, **extra):
    return client.post("/api/interviews", json={"candidateId": candidate_id, **extra}, headers=headers)


def test_create_without_date_marks_invited(client, admin_headers, seed, make_candidate, db):
    candidate = make_candidate()

    response = create_interview(client, admin_headers, candidate["id"])
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["status"] == "pending"
    assert body["interviewerId"] == seed["admin"]

    db.expire_all()
    assert db.get(Candidate, candidate["id"]).status == "45_1st_interview_sent"


def test_second_active_interview_is_conflict(client, admin_headers, make_candidate, db):
    candidate = make_candidate()
    assert create_interview(client, admin_headers, candidate["id"]).status_code == 201

    response = create_interview(client, admin_headers, candidate["id"], scheduledDate="2026-11-02T15:00:00")
    assert response.status_code == 409

    db.expire_all()
    assert db.query(Interview).filter_by(candidate_id=candidate["id"]).count() == 1


def test_interviewer_must_belong_to_account(client, admin_headers, seed, make_candidate):
    candidate = make_candidate()

    response = create_interview(client, admin_headers, candidate["id"], interviewerId=seed["outsider"])
    assert response.status_code == 400


def test_later_interview_stage_is_not_moved_back(client, admin_headers, make_candidate, db):
    candidate = make_candidate()
    client.patch(
        f"/api/candidates/{candidate['id']}",
        json={"status": "75_2nd_interview_scheduled"},
        headers=admin_headers,
    )

    response = create_interview(client, admin_headers, candidate["id"], scheduledDate="2026-11-02T15:00:00")
    assert response.status_code == 201

    db.expire_all()
    assert db.get(Candidate, candidate["id"]).status == "75_2nd_interview_scheduled"


def test_evaluate_completes_interview(client, admin_headers, seed, make_candidate):
    candidate = make_candidate()
    interview_id = create_interview(
        client, admin_headers, candidate["id"], scheduledDate="2026-11-02T15:00:00"
    ).json()["id"]

    response = client.get(f"/api/interviews/{interview_id}/evaluation", headers=admin_headers)
    assert response.status_code == 404

    response = client.post(
        f"/api/interviews/{interview_id}/evaluate",
        json={"technicalScore": 4, "overallRating": 5, "overallComments": "Strong hire"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["evaluatorId"] == seed["admin"]

    # Resubmitting replaces the scorecard
    response = client.post(
        f"/api/interviews/{interview_id}/evaluate",
        json={"overallRating": 3},
        headers=admin_headers,
    )
    assert response.status_code == 200
    evaluation = client.get(f"/api/interviews/{interview_id}/evaluation", headers=admin_headers).json()
    assert evaluation["overallRating"] == 3
    assert evaluation["technicalScore"] is None

    interview = client.get(f"/api/interviews/{interview_id}", headers=admin_headers).json()
    assert interview["status"] == "completed"
    assert interview["conductedDate"] is not None


def test_evaluation_scores_are_bounded(client, admin_headers, make_candidate):
    candidate = make_candidate()
    interview_id = create_interview(client, admin_headers, candidate["id"]).json()["id"]

    response = client.post(
        f"/api/interviews/{interview_id}/evaluate",
        json={"technicalScore": 6},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_cancelled_interview_cannot_be_completed(client, admin_headers, make_candidate):
    candidate = make_candidate()
    interview_id = create_interview(client, admin_headers, candidate["id"]).json()["id"]
    client.post(f"/api/candidates/{candidate['id']}/reject", headers=admin_headers)

    response = client.post(f"/api/interviews/{interview_id}/complete", headers=admin_headers)
    assert response.status_code == 400


def test_list_is_scoped_to_account(client, admin_headers, outsider_headers, make_candidate):
    candidate = make_candidate()
    create_interview(client, admin_headers, candidate["id"])

    response = client.get("/api/interviews", params={"candidateId": candidate["id"]}, headers=admin_headers)
    assert response.json()["meta"]["total"] == 1

    response = client.get("/api/interviews", headers=outsider_headers)
    assert response.json()["meta"]["total"] == 0
