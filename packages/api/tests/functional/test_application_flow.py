# This project was developed with assistance from AI tools.
"""Functional tests: submission, scoping, transitions, and admin escape hatches."""

from decimal import Decimal

import pytest
from admissions_db.enums import DocumentType

from ..factories import (
    make_mock_application,
    make_mock_document,
    make_mock_partner,
    make_mock_program,
    make_mock_repository,
    make_mock_request,
)
from .personas import admin, other_partner, partner, university

pytestmark = pytest.mark.functional


def _transition(client, target, **body):
    return client.post("/api/applications/101/transitions", json={"target_status": target, **body})


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


def test_partner_submits_for_own_organisation(make_client):
    partner_org = make_mock_partner()
    repo = make_mock_repository(partner=partner_org, program=make_mock_program())
    client = make_client(partner(), repo)

    resp = client.post(
        "/api/applications/",
        json={"student_name": "Amina Yusuf", "partner_id": 99, "program_info_id": 3},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["partner_id"] == 7
    assert body["tracking_number"].startswith("UNI")
    assert body["current_stage"] == 1
    assert body["current_status"] == "new_application"
    assert body["next_actor"] == "admin"
    assert body["status_display"] == "Application received. Waiting for admin review."
    assert Decimal(body["estimated_commission"]) == Decimal("3600")
    assert partner_org.total_students == 13
    repo.get_partner.assert_awaited_once_with(7)


def test_university_cannot_submit(make_client):
    client = make_client(university(), make_mock_repository())

    resp = client.post("/api/applications/", json={"student_name": "Amina Yusuf"})

    assert resp.status_code == 403
    assert resp.json()["title"] == "Forbidden"


def test_submission_validates_body(make_client):
    client = make_client(admin(), make_mock_repository())

    resp = client.post("/api/applications/", json={"student_name": ""})

    assert resp.status_code == 422
    assert resp.json()["type"] == "about:blank"


# ---------------------------------------------------------------------------
# Scoping
# ---------------------------------------------------------------------------


def test_partner_sees_own_application(make_client):
    client = make_client(partner(), make_mock_repository(make_mock_application()))

    resp = client.get("/api/applications/101")

    assert resp.status_code == 200
    assert resp.json()["tracking_number"] == "UNI20262920001"


def test_other_partner_gets_404(make_client):
    repo = make_mock_repository(make_mock_application())
    client = make_client(other_partner(), repo)

    for path in ("/api/applications/101", "/api/applications/101/history", "/api/applications/101/transitions"):
        resp = client.get(path)
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Application not found"

    resp = _transition(client, "under_review_admin")
    assert resp.status_code == 404
    repo.commit.assert_not_awaited()


def test_missing_application_is_404(make_client):
    client = make_client(admin(), make_mock_repository(None))

    assert client.get("/api/applications/555").status_code == 404


# ---------------------------------------------------------------------------
# Available transitions
# ---------------------------------------------------------------------------


def test_available_transitions_per_role(make_client):
    repo = make_mock_repository(make_mock_application())

    admin_body = make_client(admin(), repo).get("/api/applications/101/transitions").json()
    partner_body = make_client(partner(), repo).get("/api/applications/101/transitions").json()

    assert admin_body["current_status"] == "new_application"
    assert len(admin_body["transitions"]) == 6
    submitted = next(t for t in admin_body["transitions"] if t["key"] == "documents_submitted")
    assert submitted["requires_documents"] == ["passport", "academic_transcript"]
    assert partner_body["transitions"] == []


# ---------------------------------------------------------------------------
# Transitions and rule violations
# ---------------------------------------------------------------------------


def test_admin_moves_application_and_history_grows(make_client):
    repo = make_mock_repository(make_mock_application())
    client = make_client(admin(), repo)

    resp = _transition(client, "under_review_admin", notes="Picked up")

    assert resp.status_code == 200
    assert resp.json()["current_status"] == "under_review_admin"
    history = client.get("/api/applications/101/history").json()
    assert [h["status"] for h in history["data"]] == ["new_application", "under_review_admin"]
    assert history["data"][-1]["notes"] == "Picked up"


def test_unauthorized_actor_is_403(make_client):
    client = make_client(partner(), make_mock_repository(make_mock_application(status="documents_approved")))

    resp = _transition(client, "approved_stage1")

    assert resp.status_code == 403
    body = resp.json()
    assert body["type"] == "workflow:unauthorized-actor"
    assert "partner" in body["detail"]


def test_invalid_transition_is_409(make_client):
    client = make_client(admin(), make_mock_repository(make_mock_application()))

    resp = _transition(client, "commission_paid")

    assert resp.status_code == 409
    assert resp.json()["type"] == "workflow:invalid-transition"


def test_missing_reason_is_422(make_client):
    client = make_client(university(), make_mock_repository(make_mock_application(stage=2, status="sent_to_university")))

    resp = _transition(client, "rejected_university")

    assert resp.status_code == 422
    assert resp.json()["type"] == "workflow:missing-reason"


def test_incomplete_documents_list_missing_types(make_client):
    repo = make_mock_repository(
        make_mock_application(),
        requests=[make_mock_request()],
        documents=[make_mock_document(doc_type=DocumentType.PASSPORT)],
    )
    client = make_client(admin(), repo)

    resp = _transition(client, "documents_submitted")

    assert resp.status_code == 422
    body = resp.json()
    assert body["type"] == "workflow:documents-incomplete"
    assert body["missing"] == ["academic_transcript"]
    repo.rollback.assert_awaited_once()


def test_corrupt_status_is_500_without_details(make_client):
    app = make_mock_application()
    app.current_status = "lost_in_space"
    client = make_client(admin(), make_mock_repository(app))

    resp = _transition(client, "under_review_admin")

    assert resp.status_code == 500
    body = resp.json()
    assert body["type"] == "workflow:configuration"
    assert "lost_in_space" not in body["detail"]


def test_request_id_echoed(make_client):
    client = make_client(admin(), make_mock_repository(make_mock_application()))

    resp = client.post(
        "/api/applications/101/transitions",
        json={"target_status": "commission_paid"},
        headers={"X-Request-ID": "req-123"},
    )

    assert resp.json()["request_id"] == "req-123"


# ---------------------------------------------------------------------------
# Hold / resume / cancel
# ---------------------------------------------------------------------------


def test_hold_and_resume(make_client):
    app = make_mock_application(stage=2, status="sent_to_university")
    client = make_client(admin(), make_mock_repository(app))

    held = client.post("/api/applications/101/hold", json={"reason": "Awaiting fee waiver decision"})
    assert held.status_code == 200
    assert held.json()["current_status"] == "application_on_hold"
    assert held.json()["previous_status"] == "sent_to_university"
    assert held.json()["hold_reason"] == "Awaiting fee waiver decision"

    resumed = client.post("/api/applications/101/resume", json={"reason": "Waiver granted"})
    assert resumed.status_code == 200
    assert resumed.json()["current_status"] == "sent_to_university"
    assert resumed.json()["next_actor"] == "university"


def test_hold_requires_reason_body(make_client):
    client = make_client(admin(), make_mock_repository(make_mock_application()))

    resp = client.post("/api/applications/101/hold", json={"reason": ""})

    assert resp.status_code == 422


def test_partner_cannot_hold(make_client):
    client = make_client(partner(), make_mock_repository(make_mock_application()))

    resp = client.post("/api/applications/101/hold", json={"reason": "Please pause"})

    assert resp.status_code == 403


def test_cancel_then_nothing_moves(make_client):
    client = make_client(admin(), make_mock_repository(make_mock_application()))

    cancelled = client.post("/api/applications/101/cancel", json={"reason": "Student withdrew"})
    assert cancelled.status_code == 200
    assert cancelled.json()["current_status"] == "application_cancelled"
    assert cancelled.json()["cancel_reason"] == "Student withdrew"

    assert _transition(client, "under_review_admin").status_code == 409
    assert client.post("/api/applications/101/cancel", json={"reason": "Again"}).status_code == 409
