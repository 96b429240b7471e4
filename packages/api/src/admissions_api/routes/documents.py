# This project was developed with assistance from AI tools.
"""Document routes: uploads, admin review, checklists, and completeness."""

from admissions_db.enums import UserRole
from fastapi import APIRouter, Depends, Query, status

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.document import (
    DocumentRegister,
    DocumentRequestCreate,
    DocumentRequestResponse,
    DocumentResponse,
    DocumentReview,
    StageCompleteness,
)
from ..services.repository import WorkflowRepository
from ..services.workflow import WorkflowEngine
from ._deps import get_engine, get_repository, get_visible_application, not_found

router = APIRouter()


@router.get("/{application_id}/documents", response_model=list[DocumentResponse])
async def list_documents(
    application_id: int,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
) -> list[DocumentResponse]:
    await get_visible_application(repository, user, application_id)
    documents = await repository.get_documents(application_id)
    return [DocumentResponse.model_validate(doc) for doc in documents]


@router.post(
    "/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_document(
    application_id: int,
    body: DocumentRegister,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> DocumentResponse:
    """Record an uploaded document.

    The upload may move the application on by itself (checklist complete,
    offer letter, visa payment proof).
    """
    await get_visible_application(repository, user, application_id)
    result = await engine.register_document(
        application_id,
        doc_type=body.doc_type,
        actor=user.actor,
        actor_id=user.user_id,
        file_name=body.file_name,
        document_request_id=body.document_request_id,
    )
    if result is None:
        if body.document_request_id is not None:
            raise not_found("Document request not found")
        raise not_found()
    document, _application = result
    return DocumentResponse.model_validate(document)


@router.patch(
    "/{application_id}/documents/{document_id}",
    response_model=DocumentResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def review_document(
    application_id: int,
    document_id: int,
    body: DocumentReview,
    user: CurrentUser,
    engine: WorkflowEngine = Depends(get_engine),
) -> DocumentResponse:
    document = await engine.review_document(
        application_id,
        document_id,
        status=body.status,
        actor=user.actor,
        actor_id=user.user_id,
        reason=body.reason,
    )
    if document is None:
        raise not_found("Document not found")
    return DocumentResponse.model_validate(document)


@router.get("/{application_id}/completeness", response_model=StageCompleteness)
async def get_completeness(
    application_id: int,
    user: CurrentUser,
    stage: int | None = Query(default=None, ge=1, le=5),
    repository: WorkflowRepository = Depends(get_repository),
    engine: WorkflowEngine = Depends(get_engine),
) -> StageCompleteness:
    """Checklist state for ``stage`` (defaults to the current stage)."""
    application = await get_visible_application(repository, user, application_id)
    return await engine.documents.evaluate_stage(
        application.id, stage or application.current_stage
    )


@router.get(
    "/{application_id}/document-requests",
    response_model=list[DocumentRequestResponse],
)
async def list_document_requests(
    application_id: int,
    user: CurrentUser,
    repository: WorkflowRepository = Depends(get_repository),
) -> list[DocumentRequestResponse]:
    await get_visible_application(repository, user, application_id)
    requests = await repository.get_document_requests(application_id)
    return [DocumentRequestResponse.model_validate(r) for r in requests]


@router.post(
    "/{application_id}/document-requests",
    response_model=DocumentRequestResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def create_document_request(
    application_id: int,
    body: DocumentRequestCreate,
    user: CurrentUser,
    engine: WorkflowEngine = Depends(get_engine),
) -> DocumentRequestResponse:
    request = await engine.create_document_request(
        application_id,
        title=body.title,
        requirements=body.requirements,
        actor=user.actor,
        actor_id=user.user_id,
        description=body.description,
        due_date=body.due_date,
    )
    if request is None:
        raise not_found()
    return DocumentRequestResponse.model_validate(request)
