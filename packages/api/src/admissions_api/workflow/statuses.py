# This project was developed with assistance from AI tools.
"""Status codes, one enum per workflow stage.

Statuses are persisted as plain strings; the enums are ``str`` subclasses so a
stored value compares equal to its member.
"""

import enum

from admissions_db.enums import Stage

from .errors import ConfigurationError


class SubmissionStatus(str, enum.Enum):
    NEW_APPLICATION = "new_application"
    UNDER_REVIEW_ADMIN = "under_review_admin"
    CORRECTION_REQUESTED_ADMIN = "correction_requested_admin"
    DOCUMENTS_PARTIALLY_SUBMITTED = "documents_partially_submitted"
    DOCUMENTS_SUBMITTED = "documents_submitted"
    DOCUMENTS_UNDER_REVIEW = "documents_under_review"
    DOCUMENTS_APPROVED = "documents_approved"
    DOCUMENTS_REJECTED = "documents_rejected"
    DOCUMENTS_RESUBMISSION_REQUIRED = "documents_resubmission_required"
    APPROVED_STAGE1 = "approved_stage1"
    REJECTED_STAGE1 = "rejected_stage1"


class UniversityStatus(str, enum.Enum):
    SENT_TO_UNIVERSITY = "sent_to_university"
    UNIVERSITY_REQUESTED_CORRECTIONS = "university_requested_corrections"
    CORRECTIONS_SUBMITTED = "corrections_submitted"
    PROGRAM_CHANGE_SUGGESTED = "program_change_suggested"
    PROGRAM_CHANGE_ACCEPTED = "program_change_accepted"
    PROGRAM_CHANGE_REJECTED = "program_change_rejected"
    UNIVERSITY_APPROVED = "university_approved"
    OFFER_LETTER_ISSUED = "offer_letter_issued"
    REJECTED_UNIVERSITY = "rejected_university"


class VisaStatus(str, enum.Enum):
    WAITING_VISA_PAYMENT = "waiting_visa_payment"
    PAYMENT_RECEIVED = "payment_received"
    SUBMITTED_TO_IMMIGRATION = "submitted_to_immigration"
    ADDITIONAL_DOCUMENTS_REQUIRED = "additional_documents_required"
    VISA_APPROVED = "visa_approved"
    VISA_ISSUED = "visa_issued"
    VISA_REJECTED = "visa_rejected"


class ArrivalStatus(str, enum.Enum):
    WAITING_ARRIVAL_DATE = "waiting_arrival_date"
    ARRIVAL_DATE_CONFIRMED = "arrival_date_confirmed"
    ARRIVAL_DELAYED = "arrival_delayed"
    STUDENT_ARRIVED = "student_arrived"
    ARRIVAL_VERIFICATION_REJECTED = "arrival_verification_rejected"
    ARRIVAL_VERIFIED = "arrival_verified"
    ENROLLMENT_CONFIRMATION_SUBMITTED = "enrollment_confirmation_submitted"
    ENROLLMENT_CONFIRMED = "enrollment_confirmed"


class CommissionStageStatus(str, enum.Enum):
    COMMISSION_PENDING = "commission_pending"
    COMMISSION_APPROVED = "commission_approved"
    COMMISSION_DISPUTED = "commission_disputed"
    COMMISSION_RELEASED = "commission_released"
    COMMISSION_TRANSFER_DISPUTED = "commission_transfer_disputed"
    COMMISSION_PAID = "commission_paid"


class AdminStatus(str, enum.Enum):
    """Out-of-band statuses an Admin can put an application into from any stage."""

    APPLICATION_ON_HOLD = "application_on_hold"
    APPLICATION_CANCELLED = "application_cancelled"


StatusCode = (
    SubmissionStatus
    | UniversityStatus
    | VisaStatus
    | ArrivalStatus
    | CommissionStageStatus
    | AdminStatus
)

STAGE_STATUSES: dict[Stage, type[enum.Enum]] = {
    Stage.SUBMISSION: SubmissionStatus,
    Stage.UNIVERSITY: UniversityStatus,
    Stage.VISA: VisaStatus,
    Stage.ARRIVAL: ArrivalStatus,
    Stage.COMMISSION: CommissionStageStatus,
}

_STATUS_STAGE: dict[str, Stage] = {
    member.value: stage for stage, enum_cls in STAGE_STATUSES.items() for member in enum_cls
}


def stage_of(status: str) -> Stage | None:
    """Stage a status belongs to; None for administrative statuses."""
    return _STATUS_STAGE.get(str(getattr(status, "value", status)))


def parse_status(stage: int, status: str) -> StatusCode:
    """Resolve a stored (stage, status) pair to its enum member.

    Raises:
        ConfigurationError: the stage is out of range or the status does not
            belong to it.
    """
    value = str(getattr(status, "value", status))
    try:
        return AdminStatus(value)
    except ValueError:
        pass
    try:
        enum_cls = STAGE_STATUSES[Stage(stage)]
        return enum_cls(value)
    except (KeyError, ValueError) as exc:
        raise ConfigurationError(f"Unknown status '{value}' for stage {stage}") from exc
