# This project was developed with assistance from AI tools.
"""Commission routes: per-application record and dashboard aggregates."""

from admissions_db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.commission import CommissionPipelineStats, CommissionSummary, CommissionTrackingResponse
from ..services.repository import WorkflowRepository
from ..services.workflow import WorkflowEngine
from ._deps import get_engine, get_repository, get_visible_application, not_found

router = APIRouter()


@router.get(
    "/pipeline",
    response_model=CommissionPipelineStats,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def get_pipeline(engine: WorkflowEngine = Depends(get_engine)) -> CommissionPipelineStats:
    return await engine.get_commission_pipeline_stats()


@router.get(
    "/summary",
    response_model=CommissionSummary,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.PARTNER))],
)
async def get_summary(
    user: CurrentUser,
    partner_id: int | None = Query(default=None),
    engine: WorkflowEngine = Depends(get_engine),
) -> CommissionSummary:
    """Earnings summary. Partners always get their own; admins may pick a partner."""
    if user.role == UserRole.PARTNER:
        if user.partner_id is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No partner organisation on this account",
            )
        partner_id = user.partner_id
    return await engine.get_commission_summary(partner_id)


@router.get(
    "/{application_id}",
    response_model=CommissionTrackingResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.PARTNER))],
)
async def get_commission(
    application_id: int,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
) -> CommissionTrackingResponse:
    await get_visible_application(repository, user, application_id)
    tracking = await repository.get_commission_for_application(application_id)
    if tracking is None:
        raise not_found("Commission not found")
    return CommissionTrackingResponse.model_validate(tracking)
