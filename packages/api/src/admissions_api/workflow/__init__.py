# This project was developed with assistance from AI tools.
"""Workflow core: status enums, authority matrix, and pure transition logic."""

from .errors import (
    ConfigurationError,
    DocumentsIncompleteError,
    InvalidCommissionStateError,
    InvalidTransitionError,
    MissingProgramOrPartnerError,
    MissingReasonError,
    UnauthorizedActorError,
    WorkflowError,
)
from .matrix import DEFAULT_MATRIX, StatusAuthorityMatrix, StatusRule
from .statuses import (
    AdminStatus,
    ArrivalStatus,
    CommissionStageStatus,
    SubmissionStatus,
    UniversityStatus,
    VisaStatus,
)
from .transitions import TransitionAction

__all__ = [
    "DEFAULT_MATRIX",
    "StatusAuthorityMatrix",
    "StatusRule",
    "TransitionAction",
    # Statuses
    "AdminStatus",
    "ArrivalStatus",
    "CommissionStageStatus",
    "SubmissionStatus",
    "UniversityStatus",
    "VisaStatus",
    # Errors
    "ConfigurationError",
    "DocumentsIncompleteError",
    "InvalidCommissionStateError",
    "InvalidTransitionError",
    "MissingProgramOrPartnerError",
    "MissingReasonError",
    "UnauthorizedActorError",
    "WorkflowError",
]
