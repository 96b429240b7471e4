# This project was developed with assistance from AI tools.
"""Document requirement tracking.

Decides whether the mandatory documents of a stage are satisfied, keeps the
application's document counters and each request's progress in step with the
uploaded documents. Everything is recomputed from current rows on every call.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from admissions_db import Document, DocumentRequest
from admissions_db.enums import DocumentRequestStatus, DocumentStatus, DocumentType

from ..schemas.document import RequirementState, StageCompleteness

logger = logging.getLogger(__name__)

# Preference when several documents of one type exist
_STATUS_RANK = {
    DocumentStatus.APPROVED: 0,
    DocumentStatus.UNDER_REVIEW: 1,
    DocumentStatus.UPLOADED: 2,
    DocumentStatus.RESUBMISSION_REQUIRED: 3,
    DocumentStatus.REJECTED: 4,
    DocumentStatus.PENDING: 5,
}


def is_satisfying(document: Document) -> bool:
    """True when the document counts toward a requirement (uploaded and not rejected)."""
    return DocumentStatus(document.status) in DocumentStatus.satisfying_statuses()


def _best_documents(documents: Iterable[Document], stage: int) -> dict[DocumentType, Document]:
    """Pick the most advanced document per type for one stage, newest first on ties."""
    best: dict[DocumentType, Document] = {}
    for doc in documents:
        if doc.stage != stage:
            continue
        doc_type = DocumentType(doc.doc_type)
        current = best.get(doc_type)
        if current is None:
            best[doc_type] = doc
            continue
        rank = _STATUS_RANK[DocumentStatus(doc.status)]
        current_rank = _STATUS_RANK[DocumentStatus(current.status)]
        if rank < current_rank or (rank == current_rank and (doc.id or 0) > (current.id or 0)):
            best[doc_type] = doc
    return best


def _active_requests(requests: Iterable[DocumentRequest], stage: int | None = None):
    for request in requests:
        if DocumentRequestStatus(request.status) == DocumentRequestStatus.CANCELLED:
            continue
        if stage is not None and request.stage != stage:
            continue
        yield request


def evaluate_requirements(
    application_id: int,
    stage: int,
    requests: Iterable[DocumentRequest],
    documents: Iterable[Document],
    required_types: Iterable[DocumentType] = (),
) -> StageCompleteness:
    """Compare the stage's requirements against the documents on file.

    Args:
        application_id: Application being evaluated.
        stage: Stage whose checklist applies.
        requests: All document requests of the application.
        documents: All documents of the application.
        required_types: Extra mandatory types demanded by the target status.
    """
    best = _best_documents(documents, stage)
    states: list[RequirementState] = []

    def _state(doc_type: DocumentType, mandatory: bool, description: str | None) -> RequirementState:
        doc = best.get(doc_type)
        return RequirementState(
            doc_type=doc_type,
            mandatory=mandatory,
            description=description,
            satisfied=doc is not None and is_satisfying(doc),
            document_id=doc.id if doc is not None else None,
            status=DocumentStatus(doc.status) if doc is not None else None,
        )

    for request in _active_requests(requests, stage):
        for requirement in request.requirements:
            states.append(
                _state(DocumentType(requirement.doc_type), requirement.mandatory, requirement.description)
            )

    covered = {s.doc_type for s in states if s.mandatory}
    for doc_type in required_types:
        if doc_type not in covered:
            states.append(_state(DocumentType(doc_type), True, None))
            covered.add(doc_type)

    missing: list[DocumentType] = []
    for state in states:
        if state.mandatory and not state.satisfied and state.doc_type not in missing:
            missing.append(state.doc_type)

    mandatory = [s for s in states if s.mandatory]
    return StageCompleteness(
        application_id=application_id,
        stage=stage,
        is_complete=not missing,
        requirements=states,
        missing=missing,
        satisfied_count=sum(1 for s in mandatory if s.satisfied),
        mandatory_count=len(mandatory),
    )


def request_progress(request: DocumentRequest, documents: Iterable[Document]) -> DocumentRequestStatus:
    """Status a request should have given the documents on file."""
    if DocumentRequestStatus(request.status) == DocumentRequestStatus.CANCELLED:
        return DocumentRequestStatus.CANCELLED

    best = _best_documents(documents, request.stage)
    requirements = list(request.requirements)
    mandatory = [r for r in requirements if r.mandatory] or requirements
    satisfied = [
        r for r in mandatory
        if (doc := best.get(DocumentType(r.doc_type))) is not None and is_satisfying(doc)
    ]

    if mandatory and len(satisfied) == len(mandatory):
        return DocumentRequestStatus.COMPLETED
    if satisfied:
        return DocumentRequestStatus.PARTIALLY_COMPLETED
    return DocumentRequestStatus.PENDING


def document_counts(
    requests: Iterable[DocumentRequest], documents: Iterable[Document]
) -> tuple[int, int, int]:
    """(required, uploaded, approved) counters for an application."""
    documents = list(documents)
    required = sum(
        1
        for request in _active_requests(requests)
        for requirement in request.requirements
        if requirement.mandatory
    )
    uploaded = sum(1 for d in documents if DocumentStatus(d.status) != DocumentStatus.PENDING)
    approved = sum(1 for d in documents if DocumentStatus(d.status) == DocumentStatus.APPROVED)
    return required, uploaded, approved


class DocumentRequirementTracker:
    """Repository-backed view of an application's document checklists."""

    def __init__(self, repository):
        self._repo = repository

    async def evaluate_stage(
        self,
        application_id: int,
        stage: int,
        required_types: Iterable[DocumentType] = (),
    ) -> StageCompleteness:
        requests = await self._repo.get_document_requests(application_id)
        documents = await self._repo.get_documents(application_id)
        return evaluate_requirements(application_id, stage, requests, documents, required_types)

    async def is_stage_complete(
        self,
        application_id: int,
        stage: int,
        required_types: Iterable[DocumentType] = (),
    ) -> bool:
        completeness = await self.evaluate_stage(application_id, stage, required_types)
        return completeness.is_complete

    async def refresh(self, application, *, now: datetime) -> None:
        """Recompute the application's counters and every request's progress."""
        requests = await self._repo.get_document_requests(application.id)
        documents = await self._repo.get_documents(application.id)

        required, uploaded, approved = document_counts(requests, documents)
        application.required_documents_count = required
        application.uploaded_documents_count = uploaded
        application.approved_documents_count = approved

        for request in requests:
            new_status = request_progress(request, documents)
            if new_status != DocumentRequestStatus(request.status):
                logger.info(
                    "Document request %s on application %s: %s -> %s",
                    request.id,
                    application.id,
                    DocumentRequestStatus(request.status).value,
                    new_status.value,
                )
                request.status = new_status
                request.completed_at = now if new_status == DocumentRequestStatus.COMPLETED else None
