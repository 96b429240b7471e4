# This project was developed with assistance from AI tools.
"""
Admissions workflow -- domain models

Student application lifecycle models covering partners, programs,
applications and their stage history, document checklists, commission
tracking, and the audit trail.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    Actor,
    CommissionStatus,
    DocumentRequestStatus,
    DocumentStatus,
    DocumentType,
    PartnerTier,
    TransferDisputeReason,
)


class Partner(Base):
    """Recruitment partner (agency) submitting applications on behalf of students."""

    __tablename__ = "partners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    tier = Column(
        Enum(PartnerTier, name="partner_tier", native_enum=False),
        nullable=False,
        default=PartnerTier.BRONZE,
    )
    average_conversion_rate = Column(Float, nullable=False, default=0.0)
    total_students = Column(Integer, nullable=False, default=0)
    total_commission_earned = Column(Numeric(12, 2), nullable=False, default=0)
    commission_pending = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    applications = relationship("Application", back_populates="partner")

    def __repr__(self):
        return f"<Partner(id={self.id}, name='{self.name}', tier='{self.tier}')>"


class ProgramInfo(Base):
    """University program offering with the tuition and commission terms."""

    __tablename__ = "program_infos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    university_name = Column(String(200), nullable=False)
    program_name = Column(String(200), nullable=False)
    tuition_fee = Column(Numeric(12, 2), nullable=False)
    commission_percentage = Column(Numeric(5, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ProgramInfo(id={self.id}, program='{self.program_name}')>"


class Application(Base):
    """Student application moving through the five workflow stages."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tracking_number = Column(String(20), unique=True, nullable=False, index=True)
    student_name = Column(String(200), nullable=False)
    student_email = Column(String(255), nullable=True)
    partner_id = Column(
        Integer, ForeignKey("partners.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    program_info_id = Column(
        Integer, ForeignKey("program_infos.id", ondelete="SET NULL"), nullable=True,
    )
    university_name = Column(String(200), nullable=True)
    program_name = Column(String(200), nullable=True)
    intake = Column(String(50), nullable=True)

    # Workflow state
    current_stage = Column(Integer, nullable=False, default=1)
    current_status = Column(String(60), nullable=False, default="new_application", index=True)
    next_actor = Column(Enum(Actor, name="workflow_actor", native_enum=False), nullable=True)
    next_action = Column(String(255), nullable=True)
    status_change_count = Column(Integer, nullable=False, default=0)
    last_status_change_at = Column(DateTime(timezone=True), nullable=True)
    stage_completed_at = Column(JSON, nullable=True)

    # Document counters (derived)
    required_documents_count = Column(Integer, nullable=False, default=0)
    uploaded_documents_count = Column(Integer, nullable=False, default=0)
    approved_documents_count = Column(Integer, nullable=False, default=0)

    # Commission mirror
    commission_percentage = Column(Numeric(5, 2), nullable=True)
    estimated_commission = Column(Numeric(12, 2), nullable=True)
    commission_status = Column(
        Enum(CommissionStatus, name="commission_status", native_enum=False),
        nullable=True,
    )

    # Administrative hold / cancel
    previous_status = Column(String(60), nullable=True)
    previous_next_actor = Column(Enum(Actor, name="workflow_actor", native_enum=False), nullable=True)
    previous_next_action = Column(String(255), nullable=True)
    hold_reason = Column(Text, nullable=True)
    held_by = Column(String(255), nullable=True)
    held_at = Column(DateTime(timezone=True), nullable=True)
    resume_reason = Column(Text, nullable=True)
    resumed_by = Column(String(255), nullable=True)
    resumed_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(255), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    partner = relationship("Partner", back_populates="applications")
    program_info = relationship("ProgramInfo")
    history = relationship(
        "StageHistoryEntry",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="StageHistoryEntry.id",
    )
    documents = relationship(
        "Document", back_populates="application", cascade="all, delete-orphan",
    )
    document_requests = relationship(
        "DocumentRequest", back_populates="application", cascade="all, delete-orphan",
    )
    commission = relationship(
        "CommissionTracking", back_populates="application", uselist=False,
    )

    def __repr__(self):
        return (
            f"<Application(id={self.id}, tracking='{self.tracking_number}', "
            f"stage={self.current_stage}, status='{self.current_status}')>"
        )


class StageHistoryEntry(Base):
    """Append-only record of one workflow transition."""

    __tablename__ = "stage_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    stage = Column(Integer, nullable=False)
    status = Column(String(60), nullable=False)
    actor = Column(Enum(Actor, name="workflow_actor", native_enum=False), nullable=False)
    actor_id = Column(String(255), nullable=True)
    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    application = relationship("Application", back_populates="history")

    def __repr__(self):
        return f"<StageHistoryEntry(app={self.application_id}, {self.stage}/{self.status})>"


class DocumentRequest(Base):
    """Checklist of documents requested from the partner for one stage."""

    __tablename__ = "document_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    stage = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    requested_by = Column(String(255), nullable=True)
    status = Column(
        Enum(DocumentRequestStatus, name="document_request_status", native_enum=False),
        nullable=False,
        default=DocumentRequestStatus.PENDING,
    )
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="document_requests")
    requirements = relationship(
        "DocumentRequirement", back_populates="request", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<DocumentRequest(id={self.id}, stage={self.stage}, status='{self.status}')>"


class DocumentRequirement(Base):
    """A single document type expected by a DocumentRequest."""

    __tablename__ = "document_requirements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(
        Integer, ForeignKey("document_requests.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    doc_type = Column(
        Enum(DocumentType, name="document_type", native_enum=False),
        nullable=False,
    )
    description = Column(Text, nullable=True)
    mandatory = Column(Boolean, nullable=False, default=True)

    request = relationship("DocumentRequest", back_populates="requirements")

    def __repr__(self):
        return f"<DocumentRequirement(id={self.id}, type='{self.doc_type}')>"


class Document(Base):
    """Document registered against an application.

    Only metadata is stored; the file itself lives wherever the uploader put it.
    """

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    document_request_id = Column(
        Integer, ForeignKey("document_requests.id", ondelete="SET NULL"), nullable=True,
    )
    stage = Column(Integer, nullable=False)
    doc_type = Column(
        Enum(DocumentType, name="document_type", native_enum=False),
        nullable=False,
    )
    file_name = Column(String(255), nullable=True)
    status = Column(
        Enum(DocumentStatus, name="document_status", native_enum=False),
        nullable=False,
        default=DocumentStatus.UPLOADED,
    )
    uploaded_by = Column(String(255), nullable=True)
    reviewed_by = Column(String(255), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    application = relationship("Application", back_populates="documents")

    def __repr__(self):
        return f"<Document(id={self.id}, type='{self.doc_type}', status='{self.status}')>"


class CommissionTracking(Base):
    """Commission earned by a partner for one enrolled student."""

    __tablename__ = "commission_tracking"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), unique=True, nullable=False,
    )
    partner_id = Column(
        Integer, ForeignKey("partners.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    tuition_fee = Column(Numeric(12, 2), nullable=False)
    commission_percentage = Column(Numeric(5, 2), nullable=False)
    partner_tier = Column(Enum(PartnerTier, name="partner_tier", native_enum=False), nullable=False)
    tier_multiplier = Column(Numeric(4, 2), nullable=False)
    base_commission = Column(Numeric(12, 2), nullable=False)
    bonus_commission = Column(Numeric(12, 2), nullable=False, default=0)
    commission_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(
        Enum(CommissionStatus, name="commission_status", native_enum=False),
        nullable=False,
        default=CommissionStatus.PENDING,
        index=True,
    )
    enrollment_date = Column(DateTime(timezone=True), nullable=False)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approval_notes = Column(Text, nullable=True)
    released_by = Column(String(255), nullable=True)
    released_at = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(String(50), nullable=True)
    payment_reference = Column(String(100), nullable=True)
    paid_by = Column(String(255), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    dispute_reason = Column(Text, nullable=True)
    dispute_reason_code = Column(
        Enum(TransferDisputeReason, name="transfer_dispute_reason", native_enum=False),
        nullable=True,
    )
    disputed_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    application = relationship("Application", back_populates="commission")
    partner = relationship("Partner")

    def __repr__(self):
        return (
            f"<CommissionTracking(id={self.id}, app={self.application_id}, "
            f"amount={self.commission_amount}, status='{self.status}')>"
        )


class AuditEvent(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    prev_hash = Column(String(64), nullable=True)
    user_id = Column(String(255), nullable=True)
    user_role = Column(String(50), nullable=True)
    event_type = Column(String(100), nullable=False, index=True)
    application_id = Column(Integer, nullable=True, index=True)
    event_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}')>"
