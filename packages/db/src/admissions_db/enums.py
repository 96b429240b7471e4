# This project was developed with assistance from AI tools.
"""
Domain enums for the student admissions lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package). Per-stage status codes live with the
workflow matrix in the api package.
"""

import enum


class Stage(enum.IntEnum):
    SUBMISSION = 1
    UNIVERSITY = 2
    VISA = 3
    ARRIVAL = 4
    COMMISSION = 5


class Actor(str, enum.Enum):
    """Parties that can cause or are expected to cause a workflow transition."""

    ADMIN = "admin"
    PARTNER = "partner"
    UNIVERSITY = "university"
    IMMIGRATION = "immigration"
    SYSTEM = "system"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    PARTNER = "partner"
    UNIVERSITY = "university"
    IMMIGRATION = "immigration"

    @property
    def actor(self) -> Actor:
        return Actor(self.value)


class PartnerTier(str, enum.Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class DocumentType(str, enum.Enum):
    PASSPORT = "passport"
    ACADEMIC_TRANSCRIPT = "academic_transcript"
    ENGLISH_TEST = "english_test"
    PERSONAL_STATEMENT = "personal_statement"
    RECOMMENDATION_LETTER = "recommendation_letter"
    FINANCIAL_STATEMENT = "financial_statement"
    UNIVERSITY_CORRECTIONS = "university_corrections"
    OFFER_LETTER = "offer_letter"
    VISA_PAYMENT_PROOF = "visa_payment_proof"
    VISA_APPLICATION_FORM = "visa_application_form"
    VISA_DOCUMENT = "visa_document"
    TRAVEL_TICKET = "travel_ticket"
    ARRIVAL_PROOF = "arrival_proof"
    ENROLLMENT_PROOF = "enrollment_proof"
    OTHER = "other"


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    UPLOADED = "uploaded"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    RESUBMISSION_REQUIRED = "resubmission_required"

    @classmethod
    def satisfying_statuses(cls) -> frozenset["DocumentStatus"]:
        """Statuses under which an uploaded document counts toward a requirement."""
        return frozenset({cls.UPLOADED, cls.UNDER_REVIEW, cls.APPROVED})


class DocumentRequestStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIALLY_COMPLETED = "partially_completed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    EARNED = "earned"
    APPROVED = "approved"
    RELEASED = "released"
    PAID = "paid"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"

    @classmethod
    def valid_transitions(cls) -> dict["CommissionStatus", frozenset["CommissionStatus"]]:
        """Allowed moves of a CommissionTracking row.

        ``EARNED`` is only ever written onto the application as the mirror of
        a freshly created (pending) tracking row, never onto the row itself.
        """
        return {
            cls.PENDING: frozenset({cls.APPROVED, cls.DISPUTED, cls.CANCELLED}),
            cls.APPROVED: frozenset({cls.RELEASED, cls.PAID, cls.DISPUTED}),
            cls.RELEASED: frozenset({cls.PAID, cls.DISPUTED}),
            cls.DISPUTED: frozenset({cls.APPROVED, cls.RELEASED}),
            cls.EARNED: frozenset(),
            cls.PAID: frozenset(),
            cls.CANCELLED: frozenset(),
        }


class TransferDisputeReason(str, enum.Enum):
    """Reason codes a partner may give when disputing a released transfer."""

    PAYMENT_NOT_RECEIVED = "payment_not_received"
    INCORRECT_AMOUNT = "incorrect_amount"
    WRONG_ACCOUNT = "wrong_account"
    REFERENCE_MISMATCH = "reference_mismatch"
    OTHER = "other"

    @property
    def label(self) -> str:
        return _DISPUTE_REASON_LABELS[self]


_DISPUTE_REASON_LABELS = {
    TransferDisputeReason.PAYMENT_NOT_RECEIVED: "Payment not received in bank account",
    TransferDisputeReason.INCORRECT_AMOUNT: "Incorrect amount received",
    TransferDisputeReason.WRONG_ACCOUNT: "Wrong bank account credited",
    TransferDisputeReason.REFERENCE_MISMATCH: "Payment reference does not match",
    TransferDisputeReason.OTHER: "Other (please specify below)",
}
