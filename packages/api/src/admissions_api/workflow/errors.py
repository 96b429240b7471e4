# This project was developed with assistance from AI tools.
"""Errors raised by the workflow core.

All but ``ConfigurationError`` describe a precondition the caller can fix and
retry. ``ConfigurationError`` means the status table itself is inconsistent
with stored data.
"""


class WorkflowError(Exception):
    """Base class for workflow failures."""


class ConfigurationError(WorkflowError):
    """A (stage, status) pair is missing from the authority matrix."""


class InvalidTransitionError(WorkflowError):
    """Target status is not reachable from the current status."""

    def __init__(self, from_status: str, to_status: str, allowed: list[str] | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = sorted(allowed or [])
        super().__init__(
            f"Cannot transition from '{from_status}' to '{to_status}'. "
            f"Allowed: {self.allowed}"
        )


class UnauthorizedActorError(WorkflowError):
    """The acting role may not set the target status."""

    def __init__(self, actor: str, to_status: str, required: str | None = None):
        self.actor = actor
        self.to_status = to_status
        self.required = required
        detail = f" (set by {required})" if required else ""
        super().__init__(f"Role '{actor}' may not set status '{to_status}'{detail}")


class MissingReasonError(WorkflowError):
    """The target status requires a reason and none was given."""

    def __init__(self, to_status: str):
        self.to_status = to_status
        super().__init__(f"A reason is required to set status '{to_status}'")


class DocumentsIncompleteError(WorkflowError):
    """Mandatory documents for the current stage are not all satisfied."""

    def __init__(self, to_status: str, missing: list[str]):
        self.to_status = to_status
        self.missing = list(missing)
        super().__init__(
            f"Documents incomplete for '{to_status}'. Missing: {', '.join(self.missing)}"
        )


class InvalidCommissionStateError(WorkflowError):
    """Commission operation is not allowed from the record's current status."""

    def __init__(self, operation: str, current: str, allowed: list[str] | None = None):
        self.operation = operation
        self.current = current
        self.allowed = sorted(allowed or [])
        super().__init__(
            f"Cannot {operation} a commission in status '{current}'. "
            f"Allowed from: {self.allowed}"
        )


class MissingProgramOrPartnerError(WorkflowError):
    """Commission cannot be computed without both partner and program terms."""

    def __init__(self, application_id: int, missing: str):
        self.application_id = application_id
        self.missing = missing
        super().__init__(f"Application {application_id} has no {missing} on record")
