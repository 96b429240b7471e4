# This project was developed with assistance from AI tools.
"""Document, document request, and completeness schemas."""

from datetime import datetime

from admissions_db.enums import DocumentRequestStatus, DocumentStatus, DocumentType
from pydantic import BaseModel, ConfigDict, Field


class DocumentRegister(BaseModel):
    """Register an uploaded document against an application."""

    doc_type: DocumentType
    file_name: str | None = Field(default=None, max_length=255)
    document_request_id: int | None = None


class DocumentReview(BaseModel):
    """Admin review outcome for a single document."""

    status: DocumentStatus
    reason: str | None = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    document_request_id: int | None = None
    stage: int
    doc_type: DocumentType
    file_name: str | None = None
    status: DocumentStatus
    uploaded_by: str | None = None
    reviewed_by: str | None = None
    rejection_reason: str | None = None


class RequirementCreate(BaseModel):
    doc_type: DocumentType
    description: str | None = None
    mandatory: bool = True


class DocumentRequestCreate(BaseModel):
    """Open a document checklist for the application's current stage."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime | None = None
    requirements: list[RequirementCreate] = Field(min_length=1)


class RequirementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    doc_type: DocumentType
    description: str | None = None
    mandatory: bool = True


class DocumentRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    application_id: int
    stage: int
    title: str
    description: str | None = None
    status: DocumentRequestStatus
    due_date: datetime | None = None
    requirements: list[RequirementResponse] = Field(default_factory=list)


class RequirementState(BaseModel):
    """A single requirement with its fulfillment status."""

    doc_type: DocumentType
    mandatory: bool = True
    description: str | None = None
    satisfied: bool = False
    document_id: int | None = None
    status: DocumentStatus | None = None


class StageCompleteness(BaseModel):
    """Document completeness summary for one stage of an application."""

    application_id: int
    stage: int
    is_complete: bool
    requirements: list[RequirementState]
    missing: list[DocumentType] = Field(default_factory=list)
    satisfied_count: int = 0
    mandatory_count: int = 0
