# This project was developed with assistance from AI tools.
"""Shared route dependencies and helpers."""

from admissions_db import Application, get_db
from admissions_db.enums import UserRole
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..services.repository import WorkflowRepository
from ..services.workflow import WorkflowEngine


def get_repository(session: AsyncSession = Depends(get_db)) -> WorkflowRepository:
    return WorkflowRepository(session)


def get_engine(repository: WorkflowRepository = Depends(get_repository)) -> WorkflowEngine:
    return WorkflowEngine(repository)


def not_found(detail: str = "Application not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def can_see(user: UserContext, application: Application) -> bool:
    """Partners only see their own organisation's applications."""
    if user.role == UserRole.PARTNER:
        return user.partner_id is not None and application.partner_id == user.partner_id
    return True


async def get_visible_application(
    repository: WorkflowRepository, user: UserContext, application_id: int
) -> Application:
    """Load an application; missing and out-of-scope ones are both 404."""
    application = await repository.get_application(application_id)
    if application is None or not can_see(user, application):
        raise not_found()
    return application
