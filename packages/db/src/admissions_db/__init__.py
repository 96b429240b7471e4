# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
from .enums import (
    Actor,
    CommissionStatus,
    DocumentRequestStatus,
    DocumentStatus,
    DocumentType,
    PartnerTier,
    Stage,
    TransferDisputeReason,
    UserRole,
)
from .models import (
    Application,
    AuditEvent,
    CommissionTracking,
    Document,
    DocumentRequest,
    DocumentRequirement,
    Partner,
    ProgramInfo,
    StageHistoryEntry,
)

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "Actor",
    "CommissionStatus",
    "DocumentRequestStatus",
    "DocumentStatus",
    "DocumentType",
    "PartnerTier",
    "Stage",
    "TransferDisputeReason",
    "UserRole",
    # Models
    "Application",
    "AuditEvent",
    "CommissionTracking",
    "Document",
    "DocumentRequest",
    "DocumentRequirement",
    "Partner",
    "ProgramInfo",
    "StageHistoryEntry",
]
