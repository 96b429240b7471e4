# This project was developed with assistance from AI tools.
"""Application request/response schemas."""

from datetime import datetime
from decimal import Decimal

from admissions_db.enums import Actor, CommissionStatus, TransferDisputeReason
from pydantic import BaseModel, ConfigDict, Field


class ApplicationSubmit(BaseModel):
    """Submit a new student application."""

    student_name: str = Field(min_length=1, max_length=200)
    student_email: str | None = Field(default=None, max_length=255)
    partner_id: int | None = None
    program_info_id: int | None = None
    university_name: str | None = None
    program_name: str | None = None
    intake: str | None = None
    notes: str | None = None


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stage: int
    status: str
    actor: Actor
    actor_id: str | None = None
    reason: str | None = None
    notes: str | None = None
    timestamp: datetime


class ApplicationResponse(BaseModel):
    """Single application with its workflow state."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    tracking_number: str
    student_name: str
    student_email: str | None = None
    partner_id: int | None = None
    program_info_id: int | None = None
    university_name: str | None = None
    program_name: str | None = None
    intake: str | None = None
    current_stage: int
    current_status: str
    status_display: str = ""
    next_actor: Actor | None = None
    next_action: str | None = None
    status_change_count: int = 0
    last_status_change_at: datetime | None = None
    required_documents_count: int = 0
    uploaded_documents_count: int = 0
    approved_documents_count: int = 0
    commission_percentage: Decimal | None = None
    estimated_commission: Decimal | None = None
    commission_status: CommissionStatus | None = None
    previous_status: str | None = None
    hold_reason: str | None = None
    cancel_reason: str | None = None


class HistoryResponse(BaseModel):
    application_id: int
    data: list[HistoryEntryResponse]


class TransitionRequest(BaseModel):
    """Request a status change."""

    target_status: str = Field(min_length=1, max_length=60)
    reason: str | None = None
    notes: str | None = None
    document_ids: list[int] = Field(default_factory=list)
    payment_method: str | None = Field(default=None, max_length=50)
    payment_reference: str | None = Field(default=None, max_length=100)
    dispute_reason_code: TransferDisputeReason | None = None


class TransitionOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    display_name: str
    stage: int
    requires_reason: bool = False
    requires_documents: list[str] = Field(default_factory=list)


class AvailableTransitionsResponse(BaseModel):
    application_id: int
    current_stage: int
    current_status: str
    transitions: list[TransitionOptionResponse]
