# This project was developed with assistance from AI tools.
"""Audit trail service.

Every committed workflow change gets an append-only audit entry. Entries form
a SHA-256 hash chain for tamper evidence; a PostgreSQL advisory lock keeps
hash computation serial across concurrent writers.
"""

import hashlib
import json
import logging

from admissions_db import AuditEvent
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Fixed advisory lock key for audit trail serialization.
AUDIT_LOCK_KEY = 910_001


def _compute_hash(event_id: int, timestamp: str, event_data: dict | None) -> str:
    """Compute SHA-256 hash of an audit event's key fields."""
    payload = f"{event_id}|{timestamp}|{json.dumps(event_data, sort_keys=True, default=str)}"
    return hashlib.sha256(payload.encode()).hexdigest()


async def write_audit_event(
    session: AsyncSession,
    *,
    event_type: str,
    user_id: str | None = None,
    user_role: str | None = None,
    application_id: int | None = None,
    event_data: dict | None = None,
) -> AuditEvent:
    """Write a single audit event linked to the previous one.

    Args:
        session: Database session.
        event_type: Event category (e.g. 'status_changed', 'document_uploaded').
        user_id: User who triggered the event.
        user_role: Role at the time of the event.
        application_id: Related application, if any.
        event_data: Arbitrary JSON-serializable event payload.

    Returns:
        The created AuditEvent row (with prev_hash set).
    """
    # Released automatically when the transaction commits or rolls back.
    await session.execute(text(f"SELECT pg_advisory_xact_lock({AUDIT_LOCK_KEY})"))

    latest_stmt = select(AuditEvent).order_by(AuditEvent.id.desc()).limit(1)
    result = await session.execute(latest_stmt)
    prev_event = result.scalar_one_or_none()

    if prev_event is not None:
        prev_hash = _compute_hash(prev_event.id, str(prev_event.timestamp), prev_event.event_data)
    else:
        prev_hash = "genesis"

    audit = AuditEvent(
        event_type=event_type,
        user_id=user_id,
        user_role=user_role,
        application_id=application_id,
        event_data=event_data,
        prev_hash=prev_hash,
    )
    session.add(audit)
    await session.flush()
    return audit


async def add_audit_entry(
    session: AsyncSession,
    *,
    application_id: int,
    event: str,
    message: str,
    actor: str | None,
    actor_role: str | None,
    old_status: str | None = None,
    new_status: str | None = None,
    details: dict | None = None,
) -> AuditEvent | None:
    """Record a workflow event after the workflow change has been committed.

    Best effort: a database failure is logged and rolled back, never raised,
    so it cannot undo the change it describes.
    """
    event_data = {
        "message": message,
        "old_status": old_status,
        "new_status": new_status,
        "details": details or {},
    }
    try:
        audit = await write_audit_event(
            session,
            event_type=event,
            user_id=actor,
            user_role=actor_role,
            application_id=application_id,
            event_data=event_data,
        )
        await session.commit()
        return audit
    except SQLAlchemyError:
        logger.warning(
            "Audit write failed for application %s (event=%s)",
            application_id,
            event,
            exc_info=True,
        )
        await session.rollback()
        return None


async def verify_audit_chain(session: AsyncSession) -> dict:
    """Verify the integrity of the audit event hash chain.

    Returns:
        {"status": "OK", "events_checked": N} on success, or
        {"status": "TAMPERED", "first_break_id": id, "events_checked": N}
        if a mismatch is found.
    """
    stmt = select(AuditEvent).order_by(AuditEvent.id.asc())
    result = await session.execute(stmt)
    events = list(result.scalars().all())

    for i, event in enumerate(events):
        if i == 0:
            expected = "genesis"
        else:
            prev = events[i - 1]
            expected = _compute_hash(prev.id, str(prev.timestamp), prev.event_data)

        if event.prev_hash != expected:
            return {
                "status": "TAMPERED",
                "first_break_id": event.id,
                "events_checked": i + 1,
            }

    return {"status": "OK", "events_checked": len(events)}


async def get_events_by_application(
    session: AsyncSession,
    application_id: int,
) -> list[AuditEvent]:
    """Return the audit events of one application, oldest first."""
    stmt = (
        select(AuditEvent)
        .where(AuditEvent.application_id == application_id)
        .order_by(AuditEvent.timestamp.asc(), AuditEvent.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
