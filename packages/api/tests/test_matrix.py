# This project was developed with assistance from AI tools.
"""Tests for the status authority matrix."""

from dataclasses import replace

import pytest
from admissions_db.enums import Actor, DocumentType, Stage, UserRole

from admissions_api.workflow.errors import ConfigurationError
from admissions_api.workflow.matrix import (
    DEFAULT_MATRIX,
    DEFAULT_RULES,
    StatusAuthorityMatrix,
    StatusRule,
)
from admissions_api.workflow.statuses import (
    STAGE_STATUSES,
    AdminStatus,
    CommissionStageStatus,
    SubmissionStatus,
    UniversityStatus,
    parse_status,
    stage_of,
)

TERMINAL = {
    "rejected_stage1",
    "rejected_university",
    "visa_rejected",
    "commission_paid",
    "application_cancelled",
}

# ---------------------------------------------------------------------------
# Table shape
# ---------------------------------------------------------------------------


def test_every_stage_status_has_a_rule():
    for stage, enum_cls in STAGE_STATUSES.items():
        for status in enum_cls:
            rule = DEFAULT_MATRIX.get_rule(stage, status.value)
            assert rule.status == status
            assert rule.stage == stage


def test_admin_statuses_resolve_in_every_stage():
    for stage in Stage:
        assert DEFAULT_MATRIX.get_rule(stage, "application_on_hold").status == AdminStatus.APPLICATION_ON_HOLD
        assert DEFAULT_MATRIX.is_terminal(stage, "application_cancelled")


def test_terminal_statuses():
    terminal = {rule.status.value for rule in DEFAULT_MATRIX if rule.is_terminal}
    assert terminal == TERMINAL
    for rule in DEFAULT_MATRIX:
        if rule.is_terminal:
            assert not rule.transitions
            assert rule.next_actor is None


def test_no_transition_moves_to_an_earlier_stage():
    for rule in DEFAULT_MATRIX:
        if rule.stage is None:
            continue
        for target in rule.transitions:
            assert stage_of(target) >= rule.stage


def test_only_auto_trigger_sends_approved_to_university():
    rules = DEFAULT_MATRIX.auto_trigger_rules()
    assert [r.status for r in rules] == [SubmissionStatus.APPROVED_STAGE1]
    assert rules[0].system_auto_trigger_after_hours == 48
    assert rules[0].auto_trigger_target == UniversityStatus.SENT_TO_UNIVERSITY


@pytest.mark.parametrize(
    ("status", "set_by"),
    [
        ("approved_stage1", Actor.SYSTEM),
        ("documents_submitted", Actor.SYSTEM),
        ("offer_letter_issued", Actor.SYSTEM),
        ("payment_received", Actor.SYSTEM),
        ("commission_pending", Actor.SYSTEM),
        ("commission_paid", Actor.ADMIN),
        ("commission_transfer_disputed", Actor.PARTNER),
        ("university_approved", Actor.UNIVERSITY),
        ("visa_approved", Actor.IMMIGRATION),
    ],
)
def test_status_owner(status, set_by):
    rule = DEFAULT_MATRIX.target_rule(1, status)
    assert rule.set_by == set_by


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def test_unknown_status_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        DEFAULT_MATRIX.get_rule(1, "no_such_status")


def test_status_from_other_stage_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        DEFAULT_MATRIX.get_rule(1, "sent_to_university")


def test_parse_status_rejects_bad_stage():
    with pytest.raises(ConfigurationError):
        parse_status(9, "new_application")


def test_can_transition():
    assert DEFAULT_MATRIX.can_transition(2, "sent_to_university", "university_approved", Actor.UNIVERSITY)
    assert DEFAULT_MATRIX.can_transition(2, "sent_to_university", "university_approved", Actor.ADMIN)
    assert not DEFAULT_MATRIX.can_transition(2, "sent_to_university", "university_approved", Actor.PARTNER)
    assert not DEFAULT_MATRIX.can_transition(2, "sent_to_university", "visa_approved", Actor.ADMIN)
    assert not DEFAULT_MATRIX.can_transition(2, "sent_to_university", "bogus", Actor.ADMIN)


def test_partner_pays_commission_only_by_confirming_receipt():
    assert DEFAULT_MATRIX.can_transition(5, "commission_released", "commission_paid", Actor.PARTNER)
    assert not DEFAULT_MATRIX.can_transition(5, "commission_approved", "commission_paid", Actor.PARTNER)
    assert DEFAULT_MATRIX.can_transition(5, "commission_approved", "commission_paid", Actor.ADMIN)

    approved = DEFAULT_MATRIX.available_transitions(5, "commission_approved", Actor.PARTNER)
    assert [o.key for o in approved] == ["commission_disputed"]


def test_admin_approval_statuses_are_admin_only():
    for actor in (Actor.SYSTEM, Actor.PARTNER):
        assert not DEFAULT_MATRIX.can_transition(1, "documents_approved", "approved_stage1", actor)
    assert DEFAULT_MATRIX.can_transition(1, "documents_approved", "approved_stage1", Actor.ADMIN)
    assert not DEFAULT_MATRIX.can_transition(
        4, "enrollment_confirmation_submitted", "enrollment_confirmed", Actor.PARTNER
    )


def test_system_sends_approved_application_to_university():
    assert DEFAULT_MATRIX.can_transition(1, "approved_stage1", "sent_to_university", Actor.SYSTEM)
    assert not DEFAULT_MATRIX.can_transition(1, "approved_stage1", "sent_to_university", Actor.PARTNER)


def test_cross_stage_target_resolves_in_next_stage():
    rule = DEFAULT_MATRIX.target_rule(1, "sent_to_university")
    assert rule.status == UniversityStatus.SENT_TO_UNIVERSITY
    assert rule.stage == Stage.UNIVERSITY


def test_requirements():
    submitted = DEFAULT_MATRIX.get_requirements(1, "documents_submitted")
    assert submitted.requires_documents == (DocumentType.PASSPORT, DocumentType.ACADEMIC_TRANSCRIPT)
    assert not submitted.requires_reason
    assert DEFAULT_MATRIX.get_requirements(5, "commission_disputed").requires_reason


def test_available_transitions_sorted_with_stage():
    options = DEFAULT_MATRIX.available_transitions(4, "enrollment_confirmed")
    assert [(o.key, o.stage) for o in options] == [("commission_pending", 5)]

    released = DEFAULT_MATRIX.available_transitions(5, "commission_released", Actor.PARTNER)
    assert [o.key for o in released] == ["commission_paid", "commission_transfer_disputed"]
    assert released[1].requires_reason


def test_describe_for_partner():
    display = DEFAULT_MATRIX.describe(5, CommissionStageStatus.COMMISSION_RELEASED, UserRole.PARTNER)
    assert display.display_name == "Commission Released"
    assert display.description.startswith("The transfer was sent")
    assert display.next_actor == Actor.PARTNER
    assert not display.is_terminal


def test_university_sees_admin_side_text():
    text = DEFAULT_MATRIX.display_name(2, "sent_to_university", UserRole.UNIVERSITY)
    assert text == DEFAULT_MATRIX.get_rule(2, "sent_to_university").admin_text


def test_stuck_monitoring_excludes_terminal_and_untimed():
    monitored = {r.status.value for r in DEFAULT_MATRIX.stuck_monitored_rules()}
    assert "rejected_stage1" not in monitored
    assert "enrollment_confirmed" not in monitored
    assert "sent_to_university" in monitored


# ---------------------------------------------------------------------------
# Validation at construction
# ---------------------------------------------------------------------------


def test_backward_transition_rejected():
    rules = [r for r in DEFAULT_RULES if r.status != UniversityStatus.SENT_TO_UNIVERSITY]
    rules.append(
        StatusRule(
            status=UniversityStatus.SENT_TO_UNIVERSITY,
            display_name="Sent",
            set_by=Actor.ADMIN,
            next_actor=Actor.UNIVERSITY,
            next_action="Review",
            transitions=frozenset({SubmissionStatus.NEW_APPLICATION}),
        )
    )

    with pytest.raises(ConfigurationError, match="moves back"):
        StatusAuthorityMatrix(rules)


def test_dangling_transition_rejected():
    rules = [
        StatusRule(
            status=SubmissionStatus.NEW_APPLICATION,
            display_name="New",
            set_by=Actor.SYSTEM,
            next_actor=Actor.ADMIN,
            next_action="Review",
            transitions=frozenset({SubmissionStatus.UNDER_REVIEW_ADMIN}),
        )
    ]

    with pytest.raises(ConfigurationError, match="unknown"):
        StatusAuthorityMatrix(rules)


def _without_delegation(status):
    return [replace(r, delegated=frozenset()) if r.status == status else r for r in DEFAULT_RULES]


def test_auto_trigger_target_must_be_settable_by_system():
    with pytest.raises(ConfigurationError, match="System may not set"):
        StatusAuthorityMatrix(_without_delegation(SubmissionStatus.APPROVED_STAGE1))


def test_delegated_edge_must_be_a_transition():
    rules = [
        replace(r, delegated=frozenset({(CommissionStageStatus.COMMISSION_PAID, Actor.PARTNER)}))
        if r.status == CommissionStageStatus.COMMISSION_PENDING
        else r
        for r in DEFAULT_RULES
    ]

    with pytest.raises(ConfigurationError, match="delegates unknown"):
        StatusAuthorityMatrix(rules)
