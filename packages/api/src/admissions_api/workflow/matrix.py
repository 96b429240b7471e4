# This project was developed with assistance from AI tools.
"""Status authority matrix.

One immutable rule per (stage, status): who sets it, where it may go next,
what it requires, who acts next, and how long it is expected to last. The
table is validated once at import; lookups are pure.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from admissions_db.enums import Actor, DocumentType, Stage, UserRole

from .errors import ConfigurationError
from .statuses import (
    AdminStatus,
    ArrivalStatus,
    CommissionStageStatus,
    StatusCode,
    SubmissionStatus,
    UniversityStatus,
    VisaStatus,
    parse_status,
    stage_of,
)

_S1 = SubmissionStatus
_S2 = UniversityStatus
_S3 = VisaStatus
_S4 = ArrivalStatus
_S5 = CommissionStageStatus


@dataclass(frozen=True)
class StatusRule:
    """Authority and timing rules for a single status."""

    status: StatusCode
    display_name: str
    set_by: Actor
    next_actor: Actor | None
    next_action: str
    transitions: frozenset[StatusCode] = frozenset()
    # (target, actor) edges out of this status open to an actor who does not own the target
    delegated: frozenset[tuple[StatusCode, Actor]] = frozenset()
    requires_documents: tuple[DocumentType, ...] = ()
    requires_reason: bool = False
    requires_admin_approval: bool = False
    is_terminal: bool = False
    estimated_duration_days: int | None = None
    max_stuck_duration_hours: int | None = None
    system_auto_trigger_after_hours: int | None = None
    auto_trigger_target: StatusCode | None = None
    admin_text: str = ""
    partner_text: str = ""

    @property
    def stage(self) -> Stage | None:
        return stage_of(self.status)


@dataclass(frozen=True)
class Requirements:
    requires_documents: tuple[DocumentType, ...] = ()
    requires_reason: bool = False


@dataclass(frozen=True)
class TransitionOption:
    """A status the caller may move to, as shown on an action button."""

    key: str
    display_name: str
    stage: int
    set_by: Actor
    requires_reason: bool = False
    requires_documents: tuple[DocumentType, ...] = ()


@dataclass(frozen=True)
class StatusDisplay:
    display_name: str
    description: str
    next_actor: Actor | None
    next_action: str
    is_terminal: bool


def _rule(status: StatusCode, display_name: str, set_by: Actor, next_actor: Actor | None,
          next_action: str, to: Iterable[StatusCode] = (), **kwargs) -> StatusRule:
    return StatusRule(
        status=status,
        display_name=display_name,
        set_by=set_by,
        next_actor=next_actor,
        next_action=next_action,
        transitions=frozenset(to),
        **kwargs,
    )


_A = Actor.ADMIN
_P = Actor.PARTNER
_U = Actor.UNIVERSITY
_I = Actor.IMMIGRATION
_SYS = Actor.SYSTEM

# fmt: off
DEFAULT_RULES: tuple[StatusRule, ...] = (
    # -- Stage 1: submission & admin review --
    _rule(_S1.NEW_APPLICATION, "New Application", _SYS, _A, "Review new application",
          to=(_S1.UNDER_REVIEW_ADMIN, _S1.CORRECTION_REQUESTED_ADMIN,
              _S1.DOCUMENTS_PARTIALLY_SUBMITTED, _S1.DOCUMENTS_SUBMITTED,
              _S1.APPROVED_STAGE1, _S1.REJECTED_STAGE1),
          estimated_duration_days=2, max_stuck_duration_hours=48,
          admin_text="New submission waiting for its first review.",
          partner_text="Application received. Waiting for admin review."),
    _rule(_S1.UNDER_REVIEW_ADMIN, "Under Admin Review", _A, _A, "Complete application review",
          to=(_S1.CORRECTION_REQUESTED_ADMIN, _S1.DOCUMENTS_UNDER_REVIEW,
              _S1.APPROVED_STAGE1, _S1.REJECTED_STAGE1),
          estimated_duration_days=3, max_stuck_duration_hours=72,
          admin_text="You are reviewing this application.",
          partner_text="An admin is reviewing the application."),
    _rule(_S1.CORRECTION_REQUESTED_ADMIN, "Correction Requested", _A, _P,
          "Upload corrected documents",
          to=(_S1.DOCUMENTS_PARTIALLY_SUBMITTED, _S1.DOCUMENTS_SUBMITTED),
          requires_reason=True, estimated_duration_days=5, max_stuck_duration_hours=120,
          admin_text="Waiting for the partner to send corrections.",
          partner_text="Corrections were requested. Upload the corrected documents."),
    _rule(_S1.DOCUMENTS_PARTIALLY_SUBMITTED, "Documents Partially Submitted", _SYS, _P,
          "Upload remaining documents",
          to=(_S1.DOCUMENTS_SUBMITTED,),
          estimated_duration_days=3, max_stuck_duration_hours=96,
          admin_text="Some mandatory documents are still missing.",
          partner_text="Some mandatory documents are still missing. Upload the rest."),
    _rule(_S1.DOCUMENTS_SUBMITTED, "Documents Submitted", _SYS, _A, "Review submitted documents",
          to=(_S1.DOCUMENTS_UNDER_REVIEW, _S1.DOCUMENTS_APPROVED, _S1.DOCUMENTS_REJECTED,
              _S1.DOCUMENTS_RESUBMISSION_REQUIRED),
          requires_documents=(DocumentType.PASSPORT, DocumentType.ACADEMIC_TRANSCRIPT),
          estimated_duration_days=2, max_stuck_duration_hours=48,
          admin_text="All mandatory documents are in. Start the document review.",
          partner_text="All documents submitted. Waiting for admin review."),
    _rule(_S1.DOCUMENTS_UNDER_REVIEW, "Documents Under Review", _A, _A,
          "Approve or reject documents",
          to=(_S1.DOCUMENTS_APPROVED, _S1.DOCUMENTS_REJECTED,
              _S1.DOCUMENTS_RESUBMISSION_REQUIRED),
          estimated_duration_days=3, max_stuck_duration_hours=72,
          admin_text="Documents are under your review.",
          partner_text="Documents are being reviewed."),
    _rule(_S1.DOCUMENTS_APPROVED, "Documents Approved", _A, _A,
          "Approve application for university submission",
          to=(_S1.APPROVED_STAGE1,),
          estimated_duration_days=1, max_stuck_duration_hours=48,
          admin_text="Documents approved. Approve the application to continue.",
          partner_text="Documents approved. Final stage 1 approval pending."),
    _rule(_S1.DOCUMENTS_REJECTED, "Documents Rejected", _A, _A,
          "Request corrections or reject application",
          to=(_S1.CORRECTION_REQUESTED_ADMIN, _S1.REJECTED_STAGE1),
          requires_reason=True, max_stuck_duration_hours=72,
          admin_text="Documents were rejected. Decide on corrections or rejection.",
          partner_text="Documents were rejected. Waiting for admin decision."),
    _rule(_S1.DOCUMENTS_RESUBMISSION_REQUIRED, "Resubmission Required", _A, _P,
          "Re-upload rejected documents",
          to=(_S1.DOCUMENTS_PARTIALLY_SUBMITTED, _S1.DOCUMENTS_SUBMITTED),
          requires_reason=True, estimated_duration_days=5, max_stuck_duration_hours=120,
          admin_text="Waiting for the partner to resubmit documents.",
          partner_text="Some documents must be uploaded again."),
    _rule(_S1.APPROVED_STAGE1, "Approved for University Submission", _SYS, _A,
          "Send application to university",
          to=(_S2.SENT_TO_UNIVERSITY,),
          delegated=frozenset({(_S2.SENT_TO_UNIVERSITY, _SYS)}),
          requires_admin_approval=True, estimated_duration_days=1, max_stuck_duration_hours=48,
          system_auto_trigger_after_hours=48, auto_trigger_target=_S2.SENT_TO_UNIVERSITY,
          admin_text="Approved. Send the application to the university.",
          partner_text="Approved. The application will be sent to the university."),
    _rule(_S1.REJECTED_STAGE1, "Rejected", _A, None, "",
          requires_reason=True, is_terminal=True,
          admin_text="Application rejected during admin review.",
          partner_text="Application rejected. See the reason in the history."),

    # -- Stage 2: university review --
    _rule(_S2.SENT_TO_UNIVERSITY, "Sent to University", _A, _U, "Review application",
          to=(_S2.UNIVERSITY_REQUESTED_CORRECTIONS, _S2.PROGRAM_CHANGE_SUGGESTED,
              _S2.UNIVERSITY_APPROVED, _S2.REJECTED_UNIVERSITY),
          estimated_duration_days=14, max_stuck_duration_hours=336,
          admin_text="Waiting for the university decision. Record it when received.",
          partner_text="The university is reviewing the application."),
    _rule(_S2.UNIVERSITY_REQUESTED_CORRECTIONS, "University Requested Corrections", _U, _P,
          "Upload university corrections",
          to=(_S2.CORRECTIONS_SUBMITTED,),
          requires_reason=True, estimated_duration_days=5, max_stuck_duration_hours=120,
          admin_text="Waiting for the partner to address university corrections.",
          partner_text="The university asked for corrections. Upload them."),
    _rule(_S2.CORRECTIONS_SUBMITTED, "Corrections Submitted", _P, _A,
          "Forward corrections to university",
          to=(_S2.SENT_TO_UNIVERSITY,),
          requires_documents=(DocumentType.UNIVERSITY_CORRECTIONS,),
          estimated_duration_days=1, max_stuck_duration_hours=48,
          admin_text="Corrections received. Forward them to the university.",
          partner_text="Corrections submitted. Waiting for admin to forward them."),
    _rule(_S2.PROGRAM_CHANGE_SUGGESTED, "Program Change Suggested", _U, _P,
          "Accept or reject suggested program",
          to=(_S2.PROGRAM_CHANGE_ACCEPTED, _S2.PROGRAM_CHANGE_REJECTED),
          requires_reason=True, estimated_duration_days=7, max_stuck_duration_hours=168,
          admin_text="Waiting for the partner to answer the program change.",
          partner_text="The university suggested a different program. Accept or reject it."),
    _rule(_S2.PROGRAM_CHANGE_ACCEPTED, "Program Change Accepted", _P, _A,
          "Resubmit with the new program",
          to=(_S2.SENT_TO_UNIVERSITY,),
          estimated_duration_days=1, max_stuck_duration_hours=48,
          admin_text="Program change accepted. Resubmit to the university.",
          partner_text="Program change accepted. Waiting for resubmission."),
    _rule(_S2.PROGRAM_CHANGE_REJECTED, "Program Change Rejected", _P, _A,
          "Resubmit or close application",
          to=(_S2.SENT_TO_UNIVERSITY, _S2.REJECTED_UNIVERSITY),
          requires_reason=True, estimated_duration_days=2, max_stuck_duration_hours=72,
          admin_text="Program change rejected. Resubmit or close the application.",
          partner_text="Program change rejected. Waiting for admin decision."),
    _rule(_S2.UNIVERSITY_APPROVED, "University Approved", _U, _A, "Upload offer letter",
          to=(_S2.OFFER_LETTER_ISSUED,),
          estimated_duration_days=3, max_stuck_duration_hours=72,
          admin_text="The university approved. Upload the offer letter.",
          partner_text="The university approved the application."),
    _rule(_S2.OFFER_LETTER_ISSUED, "Offer Letter Issued", _SYS, _A, "Open visa stage",
          to=(_S3.WAITING_VISA_PAYMENT,),
          requires_documents=(DocumentType.OFFER_LETTER,),
          estimated_duration_days=2, max_stuck_duration_hours=72,
          admin_text="Offer letter on file. Open the visa stage.",
          partner_text="Offer letter issued. Visa process starts next."),
    _rule(_S2.REJECTED_UNIVERSITY, "Rejected by University", _U, None, "",
          requires_reason=True, is_terminal=True,
          admin_text="The university rejected the application.",
          partner_text="The university rejected the application."),

    # -- Stage 3: visa --
    _rule(_S3.WAITING_VISA_PAYMENT, "Waiting for Visa Payment", _A, _P,
          "Upload visa payment proof",
          to=(_S3.PAYMENT_RECEIVED,),
          estimated_duration_days=7, max_stuck_duration_hours=168,
          admin_text="Waiting for the visa fee payment proof.",
          partner_text="Pay the visa fee and upload the payment proof."),
    _rule(_S3.PAYMENT_RECEIVED, "Visa Payment Received", _SYS, _A,
          "Submit visa application to immigration",
          to=(_S3.SUBMITTED_TO_IMMIGRATION,),
          requires_documents=(DocumentType.VISA_PAYMENT_PROOF,),
          estimated_duration_days=2, max_stuck_duration_hours=48,
          admin_text="Payment proof received. Submit the visa application.",
          partner_text="Payment proof received. The visa application is being prepared."),
    _rule(_S3.SUBMITTED_TO_IMMIGRATION, "Submitted to Immigration", _A, _I,
          "Decide on visa application",
          to=(_S3.ADDITIONAL_DOCUMENTS_REQUIRED, _S3.VISA_APPROVED, _S3.VISA_REJECTED),
          estimated_duration_days=30, max_stuck_duration_hours=720,
          admin_text="Waiting for the immigration decision. Record it when received.",
          partner_text="The visa application is with immigration."),
    _rule(_S3.ADDITIONAL_DOCUMENTS_REQUIRED, "Additional Documents Required", _I, _P,
          "Upload additional visa documents",
          to=(_S3.SUBMITTED_TO_IMMIGRATION,),
          requires_reason=True, estimated_duration_days=7, max_stuck_duration_hours=168,
          admin_text="Immigration asked for more documents.",
          partner_text="Immigration asked for more documents. Upload them."),
    _rule(_S3.VISA_APPROVED, "Visa Approved", _I, _A, "Upload issued visa",
          to=(_S3.VISA_ISSUED,),
          estimated_duration_days=3, max_stuck_duration_hours=72,
          admin_text="Visa approved. Upload the issued visa.",
          partner_text="Visa approved. Waiting for the visa document."),
    _rule(_S3.VISA_ISSUED, "Visa Issued", _A, _A, "Open arrival stage",
          to=(_S4.WAITING_ARRIVAL_DATE,),
          requires_documents=(DocumentType.VISA_DOCUMENT,),
          estimated_duration_days=2, max_stuck_duration_hours=72,
          admin_text="Visa issued. Open the arrival stage.",
          partner_text="Visa issued. Arrival planning starts next."),
    _rule(_S3.VISA_REJECTED, "Visa Rejected", _I, None, "",
          requires_reason=True, is_terminal=True,
          admin_text="Immigration rejected the visa.",
          partner_text="The visa was rejected."),

    # -- Stage 4: arrival & enrollment --
    _rule(_S4.WAITING_ARRIVAL_DATE, "Waiting for Arrival Date", _A, _P,
          "Confirm planned arrival date",
          to=(_S4.ARRIVAL_DATE_CONFIRMED, _S4.ARRIVAL_DELAYED),
          estimated_duration_days=7, max_stuck_duration_hours=168,
          admin_text="Waiting for the partner to confirm the arrival date.",
          partner_text="Confirm the student's planned arrival date."),
    _rule(_S4.ARRIVAL_DATE_CONFIRMED, "Arrival Date Confirmed", _P, _P,
          "Confirm student arrival",
          to=(_S4.STUDENT_ARRIVED, _S4.ARRIVAL_DELAYED),
          estimated_duration_days=30, max_stuck_duration_hours=720,
          admin_text="Arrival date confirmed. Waiting for the student to arrive.",
          partner_text="Confirm once the student has arrived."),
    _rule(_S4.ARRIVAL_DELAYED, "Arrival Delayed", _P, _P, "Confirm new arrival date",
          to=(_S4.ARRIVAL_DATE_CONFIRMED,),
          requires_reason=True, estimated_duration_days=14, max_stuck_duration_hours=336,
          admin_text="Arrival delayed. Waiting for a new date.",
          partner_text="Arrival delayed. Confirm the new arrival date."),
    _rule(_S4.STUDENT_ARRIVED, "Student Arrived", _P, _A, "Verify arrival",
          to=(_S4.ARRIVAL_VERIFIED, _S4.ARRIVAL_VERIFICATION_REJECTED),
          requires_documents=(DocumentType.ARRIVAL_PROOF,),
          estimated_duration_days=2, max_stuck_duration_hours=72,
          admin_text="The partner reported arrival. Verify it.",
          partner_text="Arrival reported. Waiting for admin verification."),
    _rule(_S4.ARRIVAL_VERIFICATION_REJECTED, "Arrival Verification Rejected", _A, _P,
          "Provide valid arrival proof",
          to=(_S4.STUDENT_ARRIVED,),
          requires_reason=True, estimated_duration_days=5, max_stuck_duration_hours=120,
          admin_text="Arrival proof rejected. Waiting for new proof.",
          partner_text="Arrival proof was rejected. Upload valid proof."),
    _rule(_S4.ARRIVAL_VERIFIED, "Arrival Verified", _A, _P, "Upload enrollment proof",
          to=(_S4.ENROLLMENT_CONFIRMATION_SUBMITTED,),
          estimated_duration_days=14, max_stuck_duration_hours=336,
          admin_text="Arrival verified. Waiting for enrollment proof.",
          partner_text="Arrival verified. Upload the enrollment proof."),
    _rule(_S4.ENROLLMENT_CONFIRMATION_SUBMITTED, "Enrollment Proof Submitted", _P, _A,
          "Confirm enrollment",
          to=(_S4.ENROLLMENT_CONFIRMED,),
          requires_documents=(DocumentType.ENROLLMENT_PROOF,),
          estimated_duration_days=2, max_stuck_duration_hours=72,
          admin_text="Enrollment proof received. Confirm the enrollment.",
          partner_text="Enrollment proof submitted. Waiting for confirmation."),
    _rule(_S4.ENROLLMENT_CONFIRMED, "Enrollment Confirmed", _A, _SYS,
          "Create commission record",
          to=(_S5.COMMISSION_PENDING,),
          requires_admin_approval=True,
          admin_text="Enrollment confirmed. Commission is being created.",
          partner_text="Enrollment confirmed. Your commission is being prepared."),

    # -- Stage 5: commission --
    _rule(_S5.COMMISSION_PENDING, "Commission Pending", _SYS, _A, "Review and approve commission",
          to=(_S5.COMMISSION_APPROVED, _S5.COMMISSION_DISPUTED),
          estimated_duration_days=7, max_stuck_duration_hours=168,
          admin_text="Commission calculated. Review and approve it.",
          partner_text="Commission earned. Waiting for admin approval."),
    _rule(_S5.COMMISSION_APPROVED, "Commission Approved", _A, _A, "Release commission payment",
          to=(_S5.COMMISSION_RELEASED, _S5.COMMISSION_PAID, _S5.COMMISSION_DISPUTED),
          estimated_duration_days=7, max_stuck_duration_hours=168,
          admin_text="Commission approved. Release the payment.",
          partner_text="Commission approved. Payment will be released soon."),
    _rule(_S5.COMMISSION_DISPUTED, "Commission Disputed", _P, _A, "Resolve commission dispute",
          to=(_S5.COMMISSION_APPROVED,),
          requires_reason=True, estimated_duration_days=5, max_stuck_duration_hours=120,
          admin_text="The partner disputed the commission. Resolve the dispute.",
          partner_text="Dispute submitted. Waiting for admin resolution."),
    _rule(_S5.COMMISSION_RELEASED, "Commission Released", _A, _P,
          "Confirm receipt of commission",
          to=(_S5.COMMISSION_PAID, _S5.COMMISSION_TRANSFER_DISPUTED),
          delegated=frozenset({(_S5.COMMISSION_PAID, _P)}),
          estimated_duration_days=7, max_stuck_duration_hours=168,
          admin_text="Transfer sent. Waiting for the partner to confirm receipt.",
          partner_text="The transfer was sent. Confirm receipt or report a problem."),
    _rule(_S5.COMMISSION_TRANSFER_DISPUTED, "Commission Transfer Disputed", _P, _A,
          "Investigate transfer and release again",
          to=(_S5.COMMISSION_RELEASED,),
          requires_reason=True, estimated_duration_days=3, max_stuck_duration_hours=72,
          admin_text="The partner reported a problem with the transfer.",
          partner_text="Transfer problem reported. Waiting for admin investigation."),
    _rule(_S5.COMMISSION_PAID, "Commission Paid", _A, None, "",
          is_terminal=True,
          admin_text="Commission paid and confirmed.",
          partner_text="Commission received. This application is complete."),

    # -- Administrative, valid in every stage --
    _rule(AdminStatus.APPLICATION_ON_HOLD, "On Hold", _A, _A, "Resume or cancel application",
          requires_reason=True, max_stuck_duration_hours=720,
          admin_text="On hold. Resume or cancel when the issue is settled.",
          partner_text="The application is on hold. An admin will follow up."),
    _rule(AdminStatus.APPLICATION_CANCELLED, "Cancelled", _A, None, "",
          requires_reason=True, is_terminal=True,
          admin_text="Application cancelled.",
          partner_text="The application was cancelled."),
)
# fmt: on


class StatusAuthorityMatrix:
    """Immutable lookup over a set of status rules.

    Administrative statuses resolve in every stage; all other statuses resolve
    only in the stage their enum belongs to.
    """

    def __init__(self, rules: Iterable[StatusRule] = DEFAULT_RULES):
        self._rules: dict[tuple[Stage, StatusCode], StatusRule] = {}
        self._admin_rules: dict[AdminStatus, StatusRule] = {}
        for rule in rules:
            if isinstance(rule.status, AdminStatus):
                self._admin_rules[rule.status] = rule
            else:
                self._rules[(rule.stage, rule.status)] = rule
        self._validate()

    def _validate(self) -> None:
        """Check every transition target exists and never moves to an earlier stage."""
        for (stage, status), rule in self._rules.items():
            for target in rule.transitions:
                target_stage = stage_of(target) or stage
                if (target_stage, target) not in self._rules:
                    raise ConfigurationError(f"'{status.value}' points at unknown '{target.value}'")
                if target_stage < stage:
                    raise ConfigurationError(
                        f"'{status.value}' moves back from stage {stage} to {target_stage}"
                    )
            for target, _actor in rule.delegated:
                if target not in rule.transitions:
                    raise ConfigurationError(f"'{status.value}' delegates unknown transition '{target.value}'")
            if rule.auto_trigger_target is not None:
                if rule.auto_trigger_target not in rule.transitions:
                    raise ConfigurationError(f"Auto-trigger target of '{status.value}' is not a transition")
                target = self.target_rule(stage, rule.auto_trigger_target)
                if not self.actor_may_set(Actor.SYSTEM, target, rule):
                    raise ConfigurationError(
                        f"System may not set auto-trigger target '{target.status.value}' of '{status.value}'"
                    )
            if rule.is_terminal and rule.transitions:
                raise ConfigurationError(f"Terminal status '{status.value}' has transitions")

    def __iter__(self):
        yield from self._rules.values()
        yield from self._admin_rules.values()

    def get_rule(self, stage: int, status: str) -> StatusRule:
        """Return the rule for (stage, status).

        Raises:
            ConfigurationError: the pair is not in the table.
        """
        code = parse_status(stage, status)
        if isinstance(code, AdminStatus):
            rule = self._admin_rules.get(code)
        else:
            rule = self._rules.get((Stage(stage), code))
        if rule is None:
            raise ConfigurationError(f"No rule for status '{code.value}' in stage {stage}")
        return rule

    def target_rule(self, current_stage: int, to_status: str) -> StatusRule:
        """Rule for a transition target, resolving the stage it lands in."""
        target_stage = stage_of(to_status) or current_stage
        return self.get_rule(target_stage, to_status)

    def can_transition(self, stage: int, from_status: str, to_status: str, actor: Actor) -> bool:
        rule = self.get_rule(stage, from_status)
        try:
            target = self.target_rule(stage, to_status)
        except ConfigurationError:
            return False
        if target.status not in rule.transitions:
            return False
        return self.actor_may_set(actor, target, rule)

    @staticmethod
    def actor_may_set(actor: Actor, target: StatusRule, source: StatusRule | None = None) -> bool:
        """Whether ``actor`` may move into ``target`` (from ``source``, when given).

        Admin may set any status. Statuses requiring admin approval are
        Admin-only. Anyone else may set the statuses they own, plus the
        edges ``source`` delegates to them.
        """
        if actor == Actor.ADMIN:
            return True
        if target.requires_admin_approval:
            return False
        if target.set_by == actor:
            return True
        return source is not None and (target.status, actor) in source.delegated

    def get_requirements(self, stage: int, status: str) -> Requirements:
        rule = self.get_rule(stage, status)
        return Requirements(
            requires_documents=rule.requires_documents,
            requires_reason=rule.requires_reason,
        )

    def is_terminal(self, stage: int, status: str) -> bool:
        return self.get_rule(stage, status).is_terminal

    def available_transitions(
        self, stage: int, status: str, actor: Actor | None = None
    ) -> list[TransitionOption]:
        """Targets reachable from (stage, status), optionally filtered to what ``actor`` may set."""
        rule = self.get_rule(stage, status)
        options = []
        for target_code in rule.transitions:
            target = self.target_rule(stage, target_code)
            if actor is not None and not self.actor_may_set(actor, target, rule):
                continue
            options.append(
                TransitionOption(
                    key=target.status.value,
                    display_name=target.display_name,
                    stage=int(target.stage or stage),
                    set_by=target.set_by,
                    requires_reason=target.requires_reason,
                    requires_documents=target.requires_documents,
                )
            )
        return sorted(options, key=lambda o: (o.stage, o.key))

    def display_name(self, stage: int, status: str, role: UserRole | None = None) -> str:
        """Status label, or the role-specific explanation when a role is given.

        Partners get partner text; every other role sees the admin-side text.
        """
        rule = self.get_rule(stage, status)
        if role is None:
            return rule.display_name
        text = rule.partner_text if role == UserRole.PARTNER else rule.admin_text
        return text or rule.display_name

    def describe(self, stage: int, status: str, role: UserRole | None = None) -> StatusDisplay:
        rule = self.get_rule(stage, status)
        return StatusDisplay(
            display_name=rule.display_name,
            description=self.display_name(stage, status, role),
            next_actor=rule.next_actor,
            next_action=rule.next_action,
            is_terminal=rule.is_terminal,
        )

    def auto_trigger_rules(self) -> list[StatusRule]:
        """Rules the periodic sweep may advance without an actor."""
        return [rule for rule in self if rule.system_auto_trigger_after_hours is not None]

    def stuck_monitored_rules(self) -> list[StatusRule]:
        return [
            rule for rule in self
            if rule.max_stuck_duration_hours is not None and not rule.is_terminal
        ]


DEFAULT_MATRIX = StatusAuthorityMatrix()
