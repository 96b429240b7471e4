# This project was developed with assistance from AI tools.
"""Functional tests: stuck monitor, auto-trigger sweep, audit trail, health."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from admissions_db import AuditEvent, get_db_service

from ..factories import make_mock_application, make_mock_repository
from .personas import admin, partner

pytestmark = pytest.mark.functional


def test_stuck_applications(make_client):
    now = datetime.now(UTC)
    repo = make_mock_repository()
    repo.list_applications_in_statuses.return_value = [
        make_mock_application(id=1, entered_at=now - timedelta(hours=100)),
        make_mock_application(id=2, entered_at=now - timedelta(hours=2)),
    ]
    client = make_client(admin(), repo)

    resp = client.get("/api/admin/stuck")

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["data"][0]["application_id"] == 1
    assert body["data"][0]["max_stuck_duration_hours"] == 48


def test_sweep_sends_approved_application_after_48_hours(make_client):
    app = make_mock_application(status="approved_stage1", entered_at=datetime.now(UTC) - timedelta(hours=72))
    repo = make_mock_repository(app)
    repo.list_applications_in_statuses.return_value = [app]
    client = make_client(admin(), repo)

    resp = client.post("/api/admin/sweep")

    assert resp.status_code == 200
    assert resp.json() == {"checked": 1, "advanced": [101], "skipped": []}
    assert (app.current_stage, app.current_status) == (2, "sent_to_university")
    assert app.history[-1].actor_id == "system"


def test_admin_routes_reject_partners(make_client):
    client = make_client(partner(), make_mock_repository())

    assert client.get("/api/admin/stuck").status_code == 403
    assert client.post("/api/admin/sweep").status_code == 403
    assert client.get("/api/admin/audit/verify").status_code == 403


def test_verify_audit_chain(make_client):
    repo = make_mock_repository()
    repo.verify_audit_chain.return_value = {"status": "TAMPERED", "first_break_id": 12, "events_checked": 12}
    client = make_client(admin(), repo)

    body = client.get("/api/admin/audit/verify").json()

    assert body == {"status": "TAMPERED", "events_checked": 12, "first_break_id": 12}


def test_application_audit_events(make_client):
    repo = make_mock_repository()
    repo.get_audit_events.return_value = [
        AuditEvent(
            id=1,
            timestamp=datetime(2026, 10, 19, 9, 0, tzinfo=UTC),
            event_type="status_changed",
            user_id="admin-user",
            user_role="admin",
            application_id=101,
            event_data={"new_status": "under_review_admin"},
            prev_hash="genesis",
        )
    ]
    client = make_client(admin(), repo)

    body = client.get("/api/admin/audit/101").json()

    assert body["count"] == 1
    assert body["events"][0]["event_type"] == "status_changed"
    assert body["events"][0]["event_data"] == {"new_status": "under_review_admin"}
    repo.get_audit_events.assert_awaited_once_with(101)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(("database_ok", "status_code", "state"), [(True, 200, "healthy"), (False, 503, "degraded")])
def test_health(app, make_client, database_ok, status_code, state):
    db_service = MagicMock()
    db_service.health_check = AsyncMock(return_value=database_ok)
    app.dependency_overrides[get_db_service] = lambda: db_service
    client = make_client(admin(), make_mock_repository())

    resp = client.get("/health/")

    assert resp.status_code == status_code
    assert resp.json()["status"] == state
