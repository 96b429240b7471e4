# This project was developed with assistance from AI tools.
"""Tests for the pure transition helpers."""

from datetime import timedelta

import pytest
from admissions_db.enums import Actor, DocumentType, TransferDisputeReason

from admissions_api.workflow.errors import (
    InvalidTransitionError,
    MissingReasonError,
    UnauthorizedActorError,
)
from admissions_api.workflow.matrix import DEFAULT_MATRIX
from admissions_api.workflow.statuses import SubmissionStatus, UniversityStatus, VisaStatus
from admissions_api.workflow.transitions import (
    TransitionAction,
    check_transition,
    document_trigger,
    record_transition,
)

from .factories import NOW, make_mock_application

# ---------------------------------------------------------------------------
# check_transition
# ---------------------------------------------------------------------------


def test_check_returns_target_rule():
    action = TransitionAction(target="university_approved", actor=Actor.UNIVERSITY)
    rule = check_transition(DEFAULT_MATRIX, 2, "sent_to_university", action)
    assert rule.status == UniversityStatus.UNIVERSITY_APPROVED


def test_check_accepts_enum_target():
    action = TransitionAction(target=SubmissionStatus.UNDER_REVIEW_ADMIN, actor=Actor.ADMIN)
    rule = check_transition(DEFAULT_MATRIX, 1, "new_application", action)
    assert rule.status == SubmissionStatus.UNDER_REVIEW_ADMIN


def test_reachability_checked_before_authority():
    """An unreachable target is invalid even for a role that could never set it."""
    action = TransitionAction(target="visa_approved", actor=Actor.PARTNER)
    with pytest.raises(InvalidTransitionError):
        check_transition(DEFAULT_MATRIX, 1, "new_application", action)


def test_authority_checked_before_reason():
    action = TransitionAction(target="rejected_university", actor=Actor.PARTNER)
    with pytest.raises(UnauthorizedActorError) as exc_info:
        check_transition(DEFAULT_MATRIX, 2, "sent_to_university", action)
    assert exc_info.value.required == "university"


def test_admin_approval_target_requires_admin():
    action = TransitionAction(target="approved_stage1", actor=Actor.SYSTEM)
    with pytest.raises(UnauthorizedActorError) as exc_info:
        check_transition(DEFAULT_MATRIX, 1, "documents_approved", action)
    assert exc_info.value.required == "admin"


def test_delegated_edge_lets_partner_confirm_receipt():
    action = TransitionAction(target="commission_paid", actor=Actor.PARTNER)
    rule = check_transition(DEFAULT_MATRIX, 5, "commission_released", action)
    assert rule.set_by == Actor.ADMIN


def test_missing_reason():
    action = TransitionAction(target="rejected_university", actor=Actor.UNIVERSITY)
    with pytest.raises(MissingReasonError):
        check_transition(DEFAULT_MATRIX, 2, "sent_to_university", action)


def test_dispute_code_label_counts_as_reason():
    action = TransitionAction(
        target="commission_transfer_disputed",
        actor=Actor.PARTNER,
        dispute_reason_code=TransferDisputeReason.INCORRECT_AMOUNT,
    )
    check_transition(DEFAULT_MATRIX, 5, "commission_released", action)
    assert action.effective_reason == "Incorrect amount received"


def test_other_dispute_code_needs_text():
    action = TransitionAction(
        target="commission_transfer_disputed",
        actor=Actor.PARTNER,
        dispute_reason_code=TransferDisputeReason.OTHER,
    )
    assert action.effective_reason is None
    with pytest.raises(MissingReasonError):
        check_transition(DEFAULT_MATRIX, 5, "commission_released", action)


# ---------------------------------------------------------------------------
# record_transition
# ---------------------------------------------------------------------------


def test_record_within_stage():
    app = make_mock_application()

    step = record_transition(
        app,
        DEFAULT_MATRIX.get_rule(1, "under_review_admin"),
        actor=Actor.ADMIN,
        actor_id="admin-user",
        now=NOW,
    )

    assert step.from_status == "new_application"
    assert step.to_status == "under_review_admin"
    assert (step.from_stage, step.to_stage) == (1, 1)
    assert app.stage_completed_at == {}
    assert app.last_status_change_at == NOW
    assert app.history[-1].timestamp == NOW


def test_record_cross_stage_marks_stage_complete():
    app = make_mock_application(status="approved_stage1")

    record_transition(
        app,
        DEFAULT_MATRIX.target_rule(1, "sent_to_university"),
        actor=Actor.ADMIN,
        actor_id="admin-user",
        now=NOW,
    )

    assert app.current_stage == 2
    assert app.stage_completed_at == {"1": NOW.isoformat()}
    assert app.history[-1].stage == 2


def test_admin_status_keeps_stage():
    app = make_mock_application(stage=3, status="submitted_to_immigration")

    record_transition(
        app,
        DEFAULT_MATRIX.get_rule(3, "application_on_hold"),
        actor=Actor.ADMIN,
        actor_id="admin-user",
        now=NOW,
        reason="Waiting on embassy",
    )

    assert app.current_stage == 3
    assert app.current_status == "application_on_hold"
    assert app.history[-1].reason == "Waiting on embassy"


def test_history_timestamps_never_go_backwards():
    app = make_mock_application(entered_at=NOW)

    record_transition(
        app,
        DEFAULT_MATRIX.get_rule(1, "under_review_admin"),
        actor=Actor.ADMIN,
        actor_id="admin-user",
        now=NOW - timedelta(minutes=5),
    )

    assert app.history[-1].timestamp == NOW


# ---------------------------------------------------------------------------
# document_trigger
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("status", "doc_type", "complete", "expected"),
    [
        ("waiting_visa_payment", DocumentType.VISA_PAYMENT_PROOF, False, VisaStatus.PAYMENT_RECEIVED),
        ("university_approved", DocumentType.OFFER_LETTER, False, UniversityStatus.OFFER_LETTER_ISSUED),
        ("new_application", DocumentType.PASSPORT, False, SubmissionStatus.DOCUMENTS_PARTIALLY_SUBMITTED),
        ("new_application", DocumentType.PASSPORT, True, SubmissionStatus.DOCUMENTS_SUBMITTED),
        ("documents_partially_submitted", DocumentType.PASSPORT, False, None),
        ("documents_partially_submitted", DocumentType.ACADEMIC_TRANSCRIPT, True, SubmissionStatus.DOCUMENTS_SUBMITTED),
        ("waiting_visa_payment", DocumentType.PASSPORT, False, None),
        ("sent_to_university", DocumentType.OFFER_LETTER, False, None),
    ],
)
def test_document_trigger(status, doc_type, complete, expected):
    assert document_trigger(status, doc_type, stage_complete=complete) == expected
