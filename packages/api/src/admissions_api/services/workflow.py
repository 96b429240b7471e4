# This project was developed with assistance from AI tools.
"""Workflow engine.

Validates and applies status transitions against the authority matrix and the
document gate, runs the transitions triggered by document uploads and by
enrollment, keeps the commission record in step with stage-5 statuses, and
provides the administrative hold / resume / cancel escape hatches.

Each mutating call locks the application row, applies its changes, commits,
and only then writes audit entries. Audit failures never undo a transition.
"""

import logging
from collections.abc import Callable, Iterable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from admissions_db import Application, Document, DocumentRequest, DocumentRequirement, StageHistoryEntry
from admissions_db.enums import (
    Actor,
    CommissionStatus,
    DocumentRequestStatus,
    DocumentStatus,
    DocumentType,
    Stage,
    TransferDisputeReason,
    UserRole,
)

from ..schemas.application import ApplicationSubmit
from ..schemas.commission import CommissionPipelineStats, CommissionSummary
from ..schemas.document import RequirementCreate
from ..workflow.errors import (
    ConfigurationError,
    DocumentsIncompleteError,
    InvalidTransitionError,
    MissingReasonError,
    UnauthorizedActorError,
    WorkflowError,
)
from ..workflow.matrix import DEFAULT_MATRIX, StatusAuthorityMatrix, StatusRule, TransitionOption
from ..workflow.statuses import AdminStatus, ArrivalStatus, CommissionStageStatus, SubmissionStatus
from ..workflow.transitions import (
    DOCUMENT_COLLECTION_STATUSES,
    AppliedTransition,
    TransitionAction,
    check_transition,
    document_trigger,
    record_transition,
)
from .commission import CommissionEngine, calculate_commission
from .documents import DocumentRequirementTracker
from .tracking import allocate_tracking_number

logger = logging.getLogger(__name__)

SYSTEM_ACTOR_ID = "system"

_REVIEW_OUTCOMES = frozenset({
    DocumentStatus.UNDER_REVIEW,
    DocumentStatus.APPROVED,
    DocumentStatus.REJECTED,
    DocumentStatus.RESUBMISSION_REQUIRED,
})
_REVIEW_NEEDS_REASON = frozenset({DocumentStatus.REJECTED, DocumentStatus.RESUBMISSION_REQUIRED})


def _require_admin(actor: Actor, operation: str) -> None:
    if actor != Actor.ADMIN:
        raise UnauthorizedActorError(actor.value, operation, Actor.ADMIN.value)


def _require_reason(reason: str | None, status: str) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise MissingReasonError(status)
    return reason


class WorkflowEngine:
    """State machine over applications, backed by a WorkflowRepository."""

    def __init__(
        self,
        repository,
        matrix: StatusAuthorityMatrix = DEFAULT_MATRIX,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        self._repo = repository
        self.matrix = matrix
        self._now = clock or (lambda: datetime.now(UTC))
        self.documents = DocumentRequirementTracker(repository)
        self.commissions = CommissionEngine(repository, clock=self._now)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def get_available_transitions(
        self, stage: int, status: str, role: UserRole | None = None
    ) -> list[TransitionOption]:
        return self.matrix.available_transitions(stage, status, role.actor if role else None)

    def get_status_display_name(self, stage: int, status: str, role: UserRole | None = None) -> str:
        return self.matrix.display_name(stage, status, role)

    async def get_commission_pipeline_stats(self) -> CommissionPipelineStats:
        return await self.commissions.get_pipeline_stats()

    async def get_commission_summary(self, partner_id: int | None = None) -> CommissionSummary:
        return await self.commissions.get_summary(partner_id)

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _unit_of_work(self, application_id: int, operation: str):
        try:
            yield
            await self._repo.commit()
        except ConfigurationError:
            logger.critical(
                "Workflow configuration error during %s on application %s",
                operation,
                application_id,
                exc_info=True,
            )
            await self._repo.rollback()
            raise
        except WorkflowError as exc:
            logger.info("%s rejected on application %s: %s", operation, application_id, exc)
            await self._repo.rollback()
            raise

    async def _audit(self, application_id: int, steps: Iterable[AppliedTransition]) -> None:
        for step in steps:
            await self._repo.add_audit_entry(
                application_id=application_id,
                event=step.event,
                message=f"Status changed from {step.from_status} to {step.to_status}",
                actor=step.actor_id,
                actor_role=step.actor.value,
                old_status=step.from_status,
                new_status=step.to_status,
                details={
                    "from_stage": step.from_stage,
                    "to_stage": step.to_stage,
                    "reason": step.reason,
                    "notes": step.notes,
                },
            )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_application(
        self, data: ApplicationSubmit, *, actor: Actor, actor_id: str
    ) -> Application:
        """Create an application in (1, new_application) with its first history entry."""
        now = self._now()
        rule = self.matrix.get_rule(Stage.SUBMISSION, SubmissionStatus.NEW_APPLICATION)
        tracking_number = await allocate_tracking_number(self._repo, now)

        application = Application(
            tracking_number=tracking_number,
            student_name=data.student_name,
            student_email=data.student_email,
            partner_id=data.partner_id,
            program_info_id=data.program_info_id,
            university_name=data.university_name,
            program_name=data.program_name,
            intake=data.intake,
            current_stage=int(Stage.SUBMISSION),
            current_status=rule.status.value,
            next_actor=rule.next_actor,
            next_action=rule.next_action,
            status_change_count=0,
            last_status_change_at=now,
            stage_completed_at={},
            required_documents_count=0,
            uploaded_documents_count=0,
            approved_documents_count=0,
        )
        application.history = [
            StageHistoryEntry(
                stage=int(Stage.SUBMISSION),
                status=rule.status.value,
                actor=actor,
                actor_id=actor_id,
                notes=data.notes,
                timestamp=now,
            )
        ]

        partner = await self._repo.get_partner(data.partner_id)
        program = await self._repo.get_program_info(data.program_info_id)
        if partner is not None:
            partner.total_students = (partner.total_students or 0) + 1
        if partner is not None and program is not None:
            estimate = calculate_commission(
                program.tuition_fee,
                program.commission_percentage,
                partner.tier,
                partner.average_conversion_rate,
            )
            application.commission_percentage = program.commission_percentage
            application.estimated_commission = estimate.total
            application.university_name = application.university_name or program.university_name
            application.program_name = application.program_name or program.program_name

        self._repo.add(application)
        await self._repo.flush()
        await self._repo.commit()
        logger.info("Application %s submitted (%s)", application.id, tracking_number)

        await self._repo.add_audit_entry(
            application_id=application.id,
            event="application_submitted",
            message=f"Application {tracking_number} submitted",
            actor=actor_id,
            actor_role=actor.value,
            old_status=None,
            new_status=rule.status.value,
            details={"student_name": data.student_name, "partner_id": data.partner_id},
        )
        return application

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def apply_transition(self, application_id: int, action: TransitionAction) -> Application | None:
        """Validate and apply a status change.

        Returns:
            The updated application, or None if it does not exist.

        Raises:
            InvalidTransitionError, UnauthorizedActorError, MissingReasonError,
            DocumentsIncompleteError, InvalidCommissionStateError,
            MissingProgramOrPartnerError: the change was rejected; nothing
                was written.
        """
        application = await self._repo.get_application(application_id, for_update=True)
        if application is None:
            return None

        async with self._unit_of_work(application_id, f"transition to {action.target}"):
            steps = await self._transition(application, action)

        await self._audit(application.id, steps)
        return application

    async def _transition(
        self, application: Application, action: TransitionAction, *, event: str = "status_changed"
    ) -> list[AppliedTransition]:
        target = check_transition(
            self.matrix, application.current_stage, application.current_status, action
        )
        if target.requires_documents:
            await self._check_documents(application, target)

        reason = action.effective_reason
        if target.stage == Stage.COMMISSION:
            await self._sync_commission(application, target, action, reason)

        steps = [
            record_transition(
                application,
                target,
                actor=action.actor,
                actor_id=action.actor_id,
                now=self._now(),
                reason=reason,
                notes=action.notes,
                event=event,
            )
        ]
        if target.status == ArrivalStatus.ENROLLMENT_CONFIRMED:
            steps.extend(await self._enter_commission_stage(application))
        return steps

    async def _check_documents(self, application: Application, target: StatusRule) -> None:
        completeness = await self.documents.evaluate_stage(
            application.id, application.current_stage, target.requires_documents
        )
        if not completeness.is_complete:
            raise DocumentsIncompleteError(
                target.status.value, [doc_type.value for doc_type in completeness.missing]
            )

    async def _enter_commission_stage(self, application: Application) -> list[AppliedTransition]:
        """Create the commission and move from enrollment_confirmed to commission_pending."""
        enrollment_date = self._now()
        await self.commissions.create_tracking(application, enrollment_date)
        action = TransitionAction(
            target=CommissionStageStatus.COMMISSION_PENDING.value,
            actor=Actor.SYSTEM,
            actor_id=SYSTEM_ACTOR_ID,
        )
        target = check_transition(
            self.matrix, application.current_stage, application.current_status, action
        )
        return [
            record_transition(
                application,
                target,
                actor=Actor.SYSTEM,
                actor_id=SYSTEM_ACTOR_ID,
                now=enrollment_date,
                notes="Enrollment confirmed",
                event="auto_transition",
            )
        ]

    async def _sync_commission(
        self,
        application: Application,
        target: StatusRule,
        action: TransitionAction,
        reason: str | None,
    ) -> None:
        """Drive the commission record from the stage-5 status being entered."""
        status = target.status
        if status == CommissionStageStatus.COMMISSION_PENDING:
            return

        tracking = await self._repo.get_commission_for_application(application.id)
        if tracking is None:
            raise ConfigurationError(
                f"Application {application.id} is in the commission stage without a commission record"
            )

        actor_id = action.actor_id or SYSTEM_ACTOR_ID
        current = CommissionStatus(tracking.status)
        if status == CommissionStageStatus.COMMISSION_APPROVED:
            if current == CommissionStatus.DISPUTED:
                self.commissions.resolve_dispute(tracking, actor_id, action.notes)
            else:
                self.commissions.approve(tracking, actor_id, action.notes)
        elif status == CommissionStageStatus.COMMISSION_RELEASED:
            self.commissions.release(tracking, actor_id, action.payment_method, action.payment_reference)
        elif status == CommissionStageStatus.COMMISSION_PAID:
            if current == CommissionStatus.RELEASED:
                self.commissions.confirm_receipt(tracking, actor_id)
            else:
                self.commissions.mark_paid(tracking, actor_id, action.payment_method, action.payment_reference)
            if tracking.partner is not None:
                await self.commissions.recalculate_partner_tier(tracking.partner)
        elif status == CommissionStageStatus.COMMISSION_DISPUTED:
            self.commissions.dispute(tracking, reason)
        elif status == CommissionStageStatus.COMMISSION_TRANSFER_DISPUTED:
            self.commissions.dispute_transfer(
                tracking,
                action.dispute_reason_code or TransferDisputeReason.OTHER,
                action.reason,
            )

        application.commission_status = tracking.status

    # ------------------------------------------------------------------
    # Administrative escape hatches
    # ------------------------------------------------------------------

    async def hold(
        self, application_id: int, *, actor: Actor, actor_id: str, reason: str | None
    ) -> Application | None:
        """Park the application on Admin, remembering where it was."""
        _require_admin(actor, AdminStatus.APPLICATION_ON_HOLD.value)
        reason = _require_reason(reason, AdminStatus.APPLICATION_ON_HOLD.value)

        application = await self._repo.get_application(application_id, for_update=True)
        if application is None:
            return None

        async with self._unit_of_work(application_id, "hold"):
            current = application.current_status
            if current in (AdminStatus.APPLICATION_ON_HOLD.value, AdminStatus.APPLICATION_CANCELLED.value):
                raise InvalidTransitionError(current, AdminStatus.APPLICATION_ON_HOLD.value)
            self.matrix.get_rule(application.current_stage, current)

            now = self._now()
            application.previous_status = current
            application.previous_next_actor = application.next_actor
            application.previous_next_action = application.next_action
            application.hold_reason = reason
            application.held_by = actor_id
            application.held_at = now

            rule = self.matrix.get_rule(application.current_stage, AdminStatus.APPLICATION_ON_HOLD)
            step = record_transition(
                application, rule, actor=actor, actor_id=actor_id, now=now,
                reason=reason, event="application_held",
            )

        await self._audit(application.id, [step])
        return application

    async def resume(
        self, application_id: int, *, actor: Actor, actor_id: str, reason: str | None
    ) -> Application | None:
        """Return a held application to its pre-hold status, next actor, and next action."""
        _require_admin(actor, "resume")
        reason = _require_reason(reason, "resume")

        application = await self._repo.get_application(application_id, for_update=True)
        if application is None:
            return None

        async with self._unit_of_work(application_id, "resume"):
            current = application.current_status
            if current != AdminStatus.APPLICATION_ON_HOLD.value:
                raise InvalidTransitionError(current, "resume")
            previous = application.previous_status
            if not previous:
                raise ConfigurationError(f"Application {application.id} is on hold without a previous status")

            now = self._now()
            rule = self.matrix.get_rule(application.current_stage, previous)
            step = record_transition(
                application, rule, actor=actor, actor_id=actor_id, now=now,
                reason=reason, event="application_resumed",
            )
            application.next_actor = application.previous_next_actor
            application.next_action = application.previous_next_action
            application.previous_status = None
            application.previous_next_actor = None
            application.previous_next_action = None
            application.resume_reason = reason
            application.resumed_by = actor_id
            application.resumed_at = now

        await self._audit(application.id, [step])
        return application

    async def cancel(
        self, application_id: int, *, actor: Actor, actor_id: str, reason: str | None
    ) -> Application | None:
        """Cancel the application for good. A pending commission is cancelled with it."""
        _require_admin(actor, AdminStatus.APPLICATION_CANCELLED.value)
        reason = _require_reason(reason, AdminStatus.APPLICATION_CANCELLED.value)

        application = await self._repo.get_application(application_id, for_update=True)
        if application is None:
            return None

        async with self._unit_of_work(application_id, "cancel"):
            current = application.current_status
            if current == AdminStatus.APPLICATION_CANCELLED.value:
                raise InvalidTransitionError(current, AdminStatus.APPLICATION_CANCELLED.value)
            self.matrix.get_rule(application.current_stage, current)

            now = self._now()
            if current != AdminStatus.APPLICATION_ON_HOLD.value:
                application.previous_status = current
            application.cancel_reason = reason
            application.cancelled_by = actor_id
            application.cancelled_at = now

            if application.current_stage == Stage.COMMISSION:
                tracking = await self._repo.get_commission_for_application(application.id)
                if tracking is not None and CommissionStatus(tracking.status) == CommissionStatus.PENDING:
                    self.commissions.cancel(tracking, reason)
                    application.commission_status = tracking.status

            rule = self.matrix.get_rule(application.current_stage, AdminStatus.APPLICATION_CANCELLED)
            step = record_transition(
                application, rule, actor=actor, actor_id=actor_id, now=now,
                reason=reason, event="application_cancelled",
            )

        await self._audit(application.id, [step])
        return application

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def register_document(
        self,
        application_id: int,
        *,
        doc_type: DocumentType,
        actor: Actor,
        actor_id: str,
        file_name: str | None = None,
        document_request_id: int | None = None,
    ) -> tuple[Document, Application] | None:
        """Record an uploaded document and run any transition the upload triggers.

        Returns None if the application does not exist, or if
        ``document_request_id`` names a request of another application.
        """
        application = await self._repo.get_application(application_id, for_update=True)
        if application is None:
            return None
        if document_request_id is not None:
            request = await self._repo.get_document_request(application_id, document_request_id)
            if request is None:
                return None

        async with self._unit_of_work(application_id, "document upload"):
            document = Document(
                application_id=application.id,
                document_request_id=document_request_id,
                stage=application.current_stage,
                doc_type=DocumentType(doc_type),
                file_name=file_name,
                status=DocumentStatus.UPLOADED,
                uploaded_by=actor_id,
            )
            self._repo.add(document)
            await self._repo.flush()
            await self.documents.refresh(application, now=self._now())
            steps = await self.on_document_uploaded(application, document)

        await self._repo.add_audit_entry(
            application_id=application.id,
            event="document_uploaded",
            message=f"Document {DocumentType(doc_type).value} uploaded",
            actor=actor_id,
            actor_role=actor.value,
            details={"document_id": document.id, "file_name": file_name, "stage": document.stage},
        )
        await self._audit(application.id, steps)
        return document, application

    async def on_document_uploaded(
        self, application: Application, document: Document
    ) -> list[AppliedTransition]:
        """Apply the status change an upload implies, if any.

        A triggered change that fails validation (for example because other
        mandatory documents are still missing) is logged and skipped; the
        upload itself still stands.
        """
        stage_complete = False
        if application.current_status in {s.value for s in DOCUMENT_COLLECTION_STATUSES}:
            submitted = self.matrix.get_rule(Stage.SUBMISSION, SubmissionStatus.DOCUMENTS_SUBMITTED)
            stage_complete = await self.documents.is_stage_complete(
                application.id, application.current_stage, submitted.requires_documents
            )

        target = document_trigger(
            application.current_status,
            DocumentType(document.doc_type),
            stage_complete=stage_complete,
        )
        if target is None:
            return []

        action = TransitionAction(
            target=target.value,
            actor=Actor.SYSTEM,
            actor_id=SYSTEM_ACTOR_ID,
            notes=f"Triggered by {DocumentType(document.doc_type).value} upload",
            document_ids=(document.id,) if document.id is not None else (),
        )
        try:
            return await self._transition(application, action, event="auto_transition")
        except ConfigurationError:
            raise
        except WorkflowError as exc:
            logger.info(
                "Upload on application %s did not advance status to %s: %s",
                application.id,
                target.value,
                exc,
            )
            return []

    async def review_document(
        self,
        application_id: int,
        document_id: int,
        *,
        status: DocumentStatus,
        actor: Actor,
        actor_id: str,
        reason: str | None = None,
    ) -> Document | None:
        """Record an admin review outcome for one document."""
        _require_admin(actor, f"document {DocumentStatus(status).value}")
        status = DocumentStatus(status)
        if status not in _REVIEW_OUTCOMES:
            raise InvalidTransitionError("document review", status.value, [s.value for s in _REVIEW_OUTCOMES])
        if status in _REVIEW_NEEDS_REASON:
            reason = _require_reason(reason, status.value)

        application = await self._repo.get_application(application_id, for_update=True)
        if application is None:
            return None
        document = await self._repo.get_document(application_id, document_id)
        if document is None:
            return None

        async with self._unit_of_work(application_id, "document review"):
            old_status = DocumentStatus(document.status)
            document.status = status
            document.reviewed_by = actor_id
            document.rejection_reason = reason if status in _REVIEW_NEEDS_REASON else None
            await self.documents.refresh(application, now=self._now())

        await self._repo.add_audit_entry(
            application_id=application.id,
            event="document_reviewed",
            message=f"Document {document.id} {old_status.value} -> {status.value}",
            actor=actor_id,
            actor_role=actor.value,
            details={"document_id": document.id, "reason": reason},
        )
        return document

    async def create_document_request(
        self,
        application_id: int,
        *,
        title: str,
        requirements: list[RequirementCreate],
        actor: Actor,
        actor_id: str,
        description: str | None = None,
        due_date: datetime | None = None,
    ) -> DocumentRequest | None:
        """Open a document checklist for the application's current stage."""
        _require_admin(actor, "document request")

        application = await self._repo.get_application(application_id, for_update=True)
        if application is None:
            return None

        async with self._unit_of_work(application_id, "document request"):
            request = DocumentRequest(
                application_id=application.id,
                stage=application.current_stage,
                title=title,
                description=description,
                requested_by=actor_id,
                status=DocumentRequestStatus.PENDING,
                due_date=due_date,
                requirements=[
                    DocumentRequirement(
                        doc_type=DocumentType(r.doc_type),
                        description=r.description,
                        mandatory=r.mandatory,
                    )
                    for r in requirements
                ],
            )
            self._repo.add(request)
            await self._repo.flush()
            await self.documents.refresh(application, now=self._now())

        await self._repo.add_audit_entry(
            application_id=application.id,
            event="document_request_created",
            message=f"Document request '{title}' opened for stage {application.current_stage}",
            actor=actor_id,
            actor_role=actor.value,
            details={
                "request_id": request.id,
                "doc_types": [DocumentType(r.doc_type).value for r in requirements],
            },
        )
        return request
