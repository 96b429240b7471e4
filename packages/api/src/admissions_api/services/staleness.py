# This project was developed with assistance from AI tools.
"""Time-based monitoring of applications.

Reports applications that sat in a status longer than its
``max_stuck_duration_hours`` and advances the statuses the matrix marks for a
system auto-trigger once their waiting period has elapsed.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from admissions_db import Application
from admissions_db.enums import Actor

from ..core.config import settings
from ..schemas.admin import StuckApplication, SweepResponse
from ..workflow.errors import ConfigurationError, WorkflowError
from ..workflow.matrix import DEFAULT_MATRIX, StatusAuthorityMatrix
from ..workflow.transitions import TransitionAction
from .workflow import SYSTEM_ACTOR_ID, WorkflowEngine

logger = logging.getLogger(__name__)


def _ensure_tz(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware (UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def hours_in_status(application: Application, now: datetime) -> float:
    """Hours since the application entered its current status."""
    entered = application.last_status_change_at or application.created_at
    if entered is None:
        return 0.0
    return max((now - _ensure_tz(entered)).total_seconds() / 3600, 0.0)


def find_stuck_applications(
    applications: Iterable[Application],
    now: datetime,
    matrix: StatusAuthorityMatrix = DEFAULT_MATRIX,
) -> list[StuckApplication]:
    """Applications over their status's stuck threshold, most overdue first."""
    stuck: list[StuckApplication] = []
    for app in applications:
        try:
            rule = matrix.get_rule(app.current_stage, app.current_status)
        except ConfigurationError:
            logger.error(
                "Application %s has unknown status '%s' in stage %s",
                app.id,
                app.current_status,
                app.current_stage,
            )
            continue
        if rule.max_stuck_duration_hours is None or rule.is_terminal:
            continue

        hours = hours_in_status(app, now)
        if hours <= rule.max_stuck_duration_hours:
            continue
        stuck.append(
            StuckApplication(
                application_id=app.id,
                tracking_number=app.tracking_number,
                current_stage=app.current_stage,
                current_status=app.current_status,
                next_actor=app.next_actor,
                hours_in_status=round(hours, 1),
                max_stuck_duration_hours=rule.max_stuck_duration_hours,
                overdue_hours=round(hours - rule.max_stuck_duration_hours, 1),
            )
        )
    return sorted(stuck, key=lambda s: s.overdue_hours, reverse=True)


async def list_stuck_applications(
    repository,
    matrix: StatusAuthorityMatrix = DEFAULT_MATRIX,
    *,
    now: datetime | None = None,
) -> list[StuckApplication]:
    now = now or datetime.now(UTC)
    statuses = sorted({rule.status.value for rule in matrix.stuck_monitored_rules()})
    applications = await repository.list_applications_in_statuses(statuses)
    return find_stuck_applications(applications, now, matrix)


async def run_auto_triggers(
    engine: WorkflowEngine,
    repository,
    *,
    now: datetime | None = None,
    limit: int | None = None,
) -> SweepResponse:
    """Advance every application whose auto-trigger waiting period has elapsed.

    Each candidate goes through the normal engine path as the System actor,
    so it is locked, validated, and audited like any other transition. A
    candidate that fails validation (for example because it moved on in the
    meantime) is skipped.

    Args:
        engine: Engine sharing ``repository``.
        repository: Source of candidate applications.
        now: Override current time (for testing).
        limit: Maximum candidates examined; defaults to AUTO_TRIGGER_BATCH_SIZE.
    """
    now = now or datetime.now(UTC)
    rules = {rule.status.value: rule for rule in engine.matrix.auto_trigger_rules()}
    if not rules:
        return SweepResponse(checked=0, advanced=[], skipped=[])

    candidates = await repository.list_applications_in_statuses(
        sorted(rules), limit=limit or settings.AUTO_TRIGGER_BATCH_SIZE
    )

    advanced: list[int] = []
    skipped: list[int] = []
    for app in candidates:
        rule = rules.get(app.current_status)
        if rule is None or hours_in_status(app, now) < rule.system_auto_trigger_after_hours:
            continue

        action = TransitionAction(
            target=rule.auto_trigger_target.value,
            actor=Actor.SYSTEM,
            actor_id=SYSTEM_ACTOR_ID,
            notes=f"Automatically advanced after {rule.system_auto_trigger_after_hours} hours",
        )
        try:
            result = await engine.apply_transition(app.id, action)
        except ConfigurationError:
            raise
        except WorkflowError as exc:
            logger.warning("Auto-trigger skipped application %s: %s", app.id, exc)
            skipped.append(app.id)
            continue
        if result is None:
            skipped.append(app.id)
        else:
            advanced.append(app.id)

    logger.info(
        "Auto-trigger sweep: %d checked, %d advanced, %d skipped",
        len(candidates),
        len(advanced),
        len(skipped),
    )
    return SweepResponse(checked=len(candidates), advanced=advanced, skipped=skipped)
