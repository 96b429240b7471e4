# This project was developed with assistance from AI tools.
"""Application routes: submission, workflow state, and status transitions."""

from admissions_db import Application
from admissions_db.enums import UserRole
from fastapi import APIRouter, Depends, status

from ..middleware.auth import CurrentUser, require_roles
from ..schemas import ReasonRequest
from ..schemas.application import (
    ApplicationResponse,
    ApplicationSubmit,
    AvailableTransitionsResponse,
    HistoryEntryResponse,
    HistoryResponse,
    TransitionOptionResponse,
    TransitionRequest,
)
from ..schemas.auth import UserContext
from ..services.repository import WorkflowRepository
from ..services.workflow import WorkflowEngine
from ..workflow.matrix import DEFAULT_MATRIX
from ..workflow.transitions import TransitionAction
from ._deps import get_engine, get_repository, get_visible_application, not_found

router = APIRouter()


def build_app_response(application: Application, user: UserContext) -> ApplicationResponse:
    """ApplicationResponse with the status text worded for the caller's role."""
    response = ApplicationResponse.model_validate(application)
    return response.model_copy(
        update={
            "status_display": DEFAULT_MATRIX.display_name(
                application.current_stage, application.current_status, user.role
            )
        }
    )


@router.post(
    "/",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.PARTNER))],
)
async def submit_application(
    body: ApplicationSubmit,
    user: CurrentUser,
    engine: WorkflowEngine = Depends(get_engine),
) -> ApplicationResponse:
    """Submit a new application. Partners always submit for their own organisation."""
    if user.role == UserRole.PARTNER:
        body = body.model_copy(update={"partner_id": user.partner_id})
    application = await engine.submit_application(body, actor=user.actor, actor_id=user.user_id)
    return build_app_response(application, user)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
) -> ApplicationResponse:
    """Get a single application. Returns 404 for out-of-scope resources."""
    application = await get_visible_application(repository, user, application_id)
    return build_app_response(application, user)


@router.get("/{application_id}/history", response_model=HistoryResponse)
async def get_history(
    application_id: int,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
) -> HistoryResponse:
    application = await get_visible_application(repository, user, application_id)
    return HistoryResponse(
        application_id=application.id,
        data=[HistoryEntryResponse.model_validate(entry) for entry in application.history],
    )


@router.get("/{application_id}/transitions", response_model=AvailableTransitionsResponse)
async def list_transitions(
    application_id: int,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> AvailableTransitionsResponse:
    """Statuses the caller may move the application to from where it is now."""
    application = await get_visible_application(repository, user, application_id)
    options = engine.get_available_transitions(
        application.current_stage, application.current_status, user.role
    )
    return AvailableTransitionsResponse(
        application_id=application.id,
        current_stage=application.current_stage,
        current_status=application.current_status,
        transitions=[
            TransitionOptionResponse(
                key=option.key,
                display_name=option.display_name,
                stage=option.stage,
                requires_reason=option.requires_reason,
                requires_documents=[doc_type.value for doc_type in option.requires_documents],
            )
            for option in options
        ],
    )


@router.post("/{application_id}/transitions", response_model=ApplicationResponse)
async def transition_application(
    application_id: int,
    body: TransitionRequest,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> ApplicationResponse:
    """Move the application to ``target_status``.

    Rule violations are reported by the workflow error handler (403 / 409 / 422).
    """
    await get_visible_application(repository, user, application_id)
    action = TransitionAction(
        target=body.target_status,
        actor=user.actor,
        actor_id=user.user_id,
        reason=body.reason,
        notes=body.notes,
        document_ids=tuple(body.document_ids),
        payment_method=body.payment_method,
        payment_reference=body.payment_reference,
        dispute_reason_code=body.dispute_reason_code,
    )
    application = await engine.apply_transition(application_id, action)
    if application is None:
        raise not_found()
    return build_app_response(application, user)


@router.post("/{application_id}/hold", response_model=ApplicationResponse)
async def hold_application(
    application_id: int,
    body: ReasonRequest,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> ApplicationResponse:
    await get_visible_application(repository, user, application_id)
    application = await engine.hold(
        application_id, actor=user.actor, actor_id=user.user_id, reason=body.reason
    )
    if application is None:
        raise not_found()
    return build_app_response(application, user)


@router.post("/{application_id}/resume", response_model=ApplicationResponse)
async def resume_application(
    application_id: int,
    body: ReasonRequest,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> ApplicationResponse:
    await get_visible_application(repository, user, application_id)
    application = await engine.resume(
        application_id, actor=user.actor, actor_id=user.user_id, reason=body.reason
    )
    if application is None:
        raise not_found()
    return build_app_response(application, user)


@router.post("/{application_id}/cancel", response_model=ApplicationResponse)
async def cancel_application(
    application_id: int,
    body: ReasonRequest,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> ApplicationResponse:
    await get_visible_application(repository, user, application_id)
    application = await engine.cancel(
        application_id, actor=user.actor, actor_id=user.user_id, reason=body.reason
    )
    if application is None:
        raise not_found()
    return build_app_response(application, user)
