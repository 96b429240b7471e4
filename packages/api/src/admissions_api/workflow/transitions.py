# This project was developed with assistance from AI tools.
"""Pure transition logic: validate a requested move and apply it to an application.

Nothing here touches the database. The engine service wraps these with
locking, the document gate, persistence, and audit.
"""

from dataclasses import dataclass
from datetime import datetime

from admissions_db import StageHistoryEntry
from admissions_db.enums import Actor, DocumentType, TransferDisputeReason

from .errors import InvalidTransitionError, MissingReasonError, UnauthorizedActorError
from .matrix import StatusAuthorityMatrix, StatusRule
from .statuses import StatusCode, SubmissionStatus, UniversityStatus, VisaStatus


@dataclass(frozen=True)
class TransitionAction:
    """A requested status change."""

    target: str
    actor: Actor
    actor_id: str | None = None
    reason: str | None = None
    notes: str | None = None
    document_ids: tuple[int, ...] = ()
    payment_method: str | None = None
    payment_reference: str | None = None
    dispute_reason_code: TransferDisputeReason | None = None

    @property
    def effective_reason(self) -> str | None:
        """Reason text, falling back to the label of a non-``other`` dispute code."""
        reason = (self.reason or "").strip()
        if reason:
            return reason
        if self.dispute_reason_code and self.dispute_reason_code != TransferDisputeReason.OTHER:
            return self.dispute_reason_code.label
        return None


@dataclass(frozen=True)
class AppliedTransition:
    """What changed, kept for the audit entry written after commit."""

    application_id: int
    from_stage: int
    from_status: str
    to_stage: int
    to_status: str
    actor: Actor
    actor_id: str | None
    reason: str | None = None
    notes: str | None = None
    event: str = "status_changed"


def check_transition(
    matrix: StatusAuthorityMatrix,
    stage: int,
    status: str,
    action: TransitionAction,
) -> StatusRule:
    """Apply the matrix checks in order and return the target rule.

    Order: target reachable, actor authorized, reason present. The document
    gate is checked by the caller afterwards.

    Raises:
        ConfigurationError: the current (stage, status) is not in the matrix.
        InvalidTransitionError: target not reachable from the current status.
        UnauthorizedActorError: actor may not set the target status.
        MissingReasonError: target needs a reason and none was given.
    """
    current = matrix.get_rule(stage, status)
    allowed = [t.value for t in current.transitions]
    target_key = str(getattr(action.target, "value", action.target))
    if target_key not in allowed:
        raise InvalidTransitionError(current.status.value, target_key, allowed)

    target = matrix.target_rule(stage, target_key)
    if not matrix.actor_may_set(action.actor, target, current):
        required = Actor.ADMIN if target.requires_admin_approval else target.set_by
        raise UnauthorizedActorError(action.actor.value, target_key, required.value)

    if target.requires_reason and not action.effective_reason:
        raise MissingReasonError(target_key)

    return target


def record_transition(
    application,
    target: StatusRule,
    *,
    actor: Actor,
    actor_id: str | None,
    now: datetime,
    reason: str | None = None,
    notes: str | None = None,
    event: str = "status_changed",
) -> AppliedTransition:
    """Move ``application`` to ``target`` and append the matching history entry."""
    from_stage = application.current_stage
    from_status = application.current_status
    to_stage = int(target.stage or from_stage)

    history = application.history
    if history and history[-1].timestamp is not None and history[-1].timestamp > now:
        now = history[-1].timestamp

    application.current_stage = to_stage
    application.current_status = target.status.value
    application.next_actor = target.next_actor
    application.next_action = target.next_action or None
    application.status_change_count = (application.status_change_count or 0) + 1
    application.last_status_change_at = now

    if to_stage > from_stage:
        completed = dict(application.stage_completed_at or {})
        completed[str(from_stage)] = now.isoformat()
        application.stage_completed_at = completed

    history.append(
        StageHistoryEntry(
            stage=to_stage,
            status=target.status.value,
            actor=actor,
            actor_id=actor_id,
            reason=reason,
            notes=notes,
            timestamp=now,
        )
    )

    return AppliedTransition(
        application_id=application.id,
        from_stage=from_stage,
        from_status=from_status,
        to_stage=to_stage,
        to_status=target.status.value,
        actor=actor,
        actor_id=actor_id,
        reason=reason,
        notes=notes,
        event=event,
    )


# Statuses in which a stage-1 upload can complete (or partially complete) the checklist
DOCUMENT_COLLECTION_STATUSES = frozenset({
    SubmissionStatus.NEW_APPLICATION,
    SubmissionStatus.CORRECTION_REQUESTED_ADMIN,
    SubmissionStatus.DOCUMENTS_PARTIALLY_SUBMITTED,
    SubmissionStatus.DOCUMENTS_RESUBMISSION_REQUIRED,
})


def document_trigger(
    status: str,
    doc_type: DocumentType,
    *,
    stage_complete: bool,
) -> StatusCode | None:
    """Status an upload moves the application to without an explicit action, if any.

    Args:
        status: Current status of the application.
        doc_type: Type of the document just uploaded.
        stage_complete: Whether every mandatory document of the current stage
            is now satisfied.
    """
    if status == VisaStatus.WAITING_VISA_PAYMENT.value and doc_type == DocumentType.VISA_PAYMENT_PROOF:
        return VisaStatus.PAYMENT_RECEIVED
    if status == UniversityStatus.UNIVERSITY_APPROVED.value and doc_type == DocumentType.OFFER_LETTER:
        return UniversityStatus.OFFER_LETTER_ISSUED
    if status in {s.value for s in DOCUMENT_COLLECTION_STATUSES}:
        if stage_complete:
            return SubmissionStatus.DOCUMENTS_SUBMITTED
        if status != SubmissionStatus.DOCUMENTS_PARTIALLY_SUBMITTED.value:
            return SubmissionStatus.DOCUMENTS_PARTIALLY_SUBMITTED
    return None
