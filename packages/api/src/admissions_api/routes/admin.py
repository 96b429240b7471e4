# This project was developed with assistance from AI tools.
"""Admin routes: stuck-application monitor, auto-trigger sweep, audit trail."""

from datetime import UTC, datetime

from admissions_db.enums import UserRole
from fastapi import APIRouter, Depends

from ..middleware.auth import require_roles
from ..schemas.admin import (
    AuditChainVerifyResponse,
    AuditEventItem,
    AuditEventsResponse,
    StuckApplicationsResponse,
    SweepResponse,
)
from ..services.repository import WorkflowRepository
from ..services.staleness import list_stuck_applications, run_auto_triggers
from ..services.workflow import WorkflowEngine
from ._deps import get_engine, get_repository

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get("/stuck", response_model=StuckApplicationsResponse)
async def get_stuck_applications(
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> StuckApplicationsResponse:
    now = datetime.now(UTC)
    stuck = await list_stuck_applications(repository, engine.matrix, now=now)
    return StuckApplicationsResponse(checked_at=now, count=len(stuck), data=stuck)


@router.post("/sweep", response_model=SweepResponse)
async def sweep_auto_triggers(
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> SweepResponse:
    """Advance applications whose auto-trigger waiting period has elapsed."""
    return await run_auto_triggers(engine, repository)


@router.get("/audit/verify", response_model=AuditChainVerifyResponse)
async def verify_audit(
    repository: WorkflowRepository = Depends(get_repository),
) -> AuditChainVerifyResponse:
    result = await repository.verify_audit_chain()
    return AuditChainVerifyResponse(**result)


@router.get("/audit/{application_id}", response_model=AuditEventsResponse)
async def get_application_audit(
    application_id: int,
    repository: WorkflowRepository = Depends(get_repository),
) -> AuditEventsResponse:
    events = await repository.get_audit_events(application_id)
    return AuditEventsResponse(
        application_id=application_id,
        count=len(events),
        events=[AuditEventItem.model_validate(e, from_attributes=True) for e in events],
    )
