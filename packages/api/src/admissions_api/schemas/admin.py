# This project was developed with assistance from AI tools.
"""Admin monitoring and audit schemas."""

from datetime import datetime

from admissions_db.enums import Actor
from pydantic import BaseModel


class StuckApplication(BaseModel):
    """An application that has sat in its status longer than allowed."""

    application_id: int
    tracking_number: str | None = None
    current_stage: int
    current_status: str
    next_actor: Actor | None = None
    hours_in_status: float
    max_stuck_duration_hours: int
    overdue_hours: float


class StuckApplicationsResponse(BaseModel):
    checked_at: datetime
    count: int
    data: list[StuckApplication]


class SweepResponse(BaseModel):
    """Result of an auto-trigger sweep."""

    checked: int
    advanced: list[int]
    skipped: list[int]


class AuditChainVerifyResponse(BaseModel):
    status: str
    events_checked: int
    first_break_id: int | None = None


class AuditEventItem(BaseModel):
    id: int
    timestamp: datetime
    event_type: str
    user_id: str | None = None
    user_role: str | None = None
    application_id: int | None = None
    event_data: dict | None = None


class AuditEventsResponse(BaseModel):
    application_id: int
    count: int
    events: list[AuditEventItem]
