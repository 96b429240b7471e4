# This project was developed with assistance from AI tools.
"""Functional tests: enrollment to commission paid, and commission dashboards."""

from datetime import timedelta
from decimal import Decimal

import pytest
from admissions_db.enums import CommissionStatus, DocumentType

from ..factories import (
    NOW,
    make_mock_application,
    make_mock_document,
    make_mock_partner,
    make_mock_program,
    make_mock_repository,
    make_mock_tracking,
)
from .personas import admin, other_partner, partner, university

pytestmark = pytest.mark.functional


def _transition(client, target, **body):
    return client.post("/api/applications/101/transitions", json={"target_status": target, **body})


def test_enrollment_through_commission_paid(make_client):
    partner_org = make_mock_partner()
    repo = make_mock_repository(
        make_mock_application(stage=4, status="enrollment_confirmation_submitted"),
        partner=partner_org,
        program=make_mock_program(),
        documents=[make_mock_document(stage=4, doc_type=DocumentType.ENROLLMENT_PROOF)],
        paid_count=1,
    )
    admin_client = make_client(admin(), repo)

    resp = _transition(admin_client, "enrollment_confirmed")
    assert resp.status_code == 200
    body = resp.json()
    assert (body["current_stage"], body["current_status"]) == (5, "commission_pending")
    assert body["commission_status"] == "earned"

    commission = admin_client.get("/api/applications/101").json()
    assert Decimal(commission["estimated_commission"]) == Decimal("3600")

    assert _transition(admin_client, "commission_approved").status_code == 200
    resp = _transition(admin_client, "commission_released", payment_method="wire", payment_reference="TX-77")
    assert resp.status_code == 200
    assert resp.json()["next_actor"] == "partner"

    partner_client = make_client(partner(), repo)
    resp = _transition(partner_client, "commission_paid")
    assert resp.status_code == 200
    assert resp.json()["current_status"] == "commission_paid"
    assert resp.json()["commission_status"] == "paid"
    assert partner_org.total_commission_earned == Decimal("3600.00")

    record = partner_client.get("/api/commissions/101").json()
    assert record["status"] == "paid"
    assert record["payment_reference"] == "TX-77"


def test_partner_cannot_skip_release(make_client):
    tracking = make_mock_tracking(status=CommissionStatus.APPROVED, partner=make_mock_partner())
    repo = make_mock_repository(make_mock_application(stage=5, status="commission_approved"), commission=tracking)
    client = make_client(partner(), repo)

    resp = _transition(client, "commission_paid")

    assert resp.status_code == 403
    assert resp.json()["type"] == "workflow:unauthorized-actor"
    assert tracking.status == CommissionStatus.APPROVED


def test_enrollment_without_program_is_422(make_client):
    repo = make_mock_repository(
        make_mock_application(stage=4, status="enrollment_confirmation_submitted"),
        partner=make_mock_partner(),
    )
    client = make_client(admin(), repo)

    resp = _transition(client, "enrollment_confirmed")

    assert resp.status_code == 422
    assert resp.json()["type"] == "workflow:missing-program-or-partner"
    repo.commit.assert_not_awaited()


def test_transfer_dispute_with_reason_code(make_client):
    tracking = make_mock_tracking(status=CommissionStatus.RELEASED, partner=make_mock_partner())
    repo = make_mock_repository(make_mock_application(stage=5, status="commission_released"), commission=tracking)
    client = make_client(partner(), repo)

    resp = _transition(client, "commission_transfer_disputed", dispute_reason_code="reference_mismatch")

    assert resp.status_code == 200
    record = client.get("/api/commissions/101").json()
    assert record["status"] == "disputed"
    assert record["dispute_reason_code"] == "reference_mismatch"
    assert record["dispute_reason"] == "Payment reference does not match"


def test_commission_record_scoped_to_partner(make_client):
    repo = make_mock_repository(make_mock_application(stage=5, status="commission_pending"), commission=make_mock_tracking())

    assert make_client(other_partner(), repo).get("/api/commissions/101").status_code == 404
    assert make_client(university(), repo).get("/api/commissions/101").status_code == 403


def test_missing_commission_record(make_client):
    client = make_client(admin(), make_mock_repository(make_mock_application()))

    resp = client.get("/api/commissions/101")

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Commission not found"


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------


def test_partner_summary_is_own(make_client):
    repo = make_mock_repository()
    paid = make_mock_tracking(id=2, application_id=102, status=CommissionStatus.PAID, amount="2000.00")
    paid.paid_at = NOW - timedelta(days=400)
    repo.list_commissions.return_value = [make_mock_tracking(), paid]
    client = make_client(partner(), repo)

    resp = client.get("/api/commissions/summary", params={"partner_id": 99})

    assert resp.status_code == 200
    body = resp.json()
    assert body["partner_id"] == 7
    assert Decimal(body["total_earned"]) == Decimal("2000")
    assert Decimal(body["pending_review"]) == Decimal("3600")
    assert body["total_students"] == 2
    repo.list_commissions.assert_awaited_once_with(7)


def test_admin_summary_for_any_partner(make_client):
    repo = make_mock_repository()
    client = make_client(admin(), repo)

    resp = client.get("/api/commissions/summary", params={"partner_id": 8})

    assert resp.status_code == 200
    assert resp.json()["partner_id"] == 8
    repo.list_commissions.assert_awaited_once_with(8)


def test_pipeline_admin_only(make_client):
    repo = make_mock_repository()
    repo.list_commissions.return_value = [
        make_mock_tracking(id=1, application_id=1),
        make_mock_tracking(id=2, application_id=2, status=CommissionStatus.DISPUTED),
    ]

    assert make_client(partner(), repo).get("/api/commissions/pipeline").status_code == 403

    body = make_client(admin(), repo).get("/api/commissions/pipeline").json()
    assert body["pending"]["count"] == 1
    assert body["disputed_count"] == 1
