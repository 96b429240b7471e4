# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from admissions_db import get_db_service
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .routes import admin, applications, commissions, documents, health
from .schemas.error import ErrorResponse
from .services.tracking import TrackingNumberExhaustedError
from .workflow.errors import (
    ConfigurationError,
    DocumentsIncompleteError,
    InvalidCommissionStateError,
    InvalidTransitionError,
    MissingProgramOrPartnerError,
    MissingReasonError,
    UnauthorizedActorError,
    WorkflowError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup/shutdown lifecycle."""
    if settings.AUTH_DISABLED:
        logger.warning("AUTH_DISABLED is set: every request runs as the dev admin user")
    yield
    await get_db_service().close()


app = FastAPI(
    title="Student Admissions Workflow API",
    description="Five-stage admissions workflow for partner-submitted student applications",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

# (status code, problem type) per workflow error
_WORKFLOW_ERRORS: dict[type[WorkflowError], tuple[int, str]] = {
    InvalidTransitionError: (409, "workflow:invalid-transition"),
    InvalidCommissionStateError: (409, "workflow:invalid-commission-state"),
    UnauthorizedActorError: (403, "workflow:unauthorized-actor"),
    MissingReasonError: (422, "workflow:missing-reason"),
    DocumentsIncompleteError: (422, "workflow:documents-incomplete"),
    MissingProgramOrPartnerError: (422, "workflow:missing-program-or-partner"),
    ConfigurationError: (500, "workflow:configuration"),
}


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", str(uuid.uuid4()))


def _build_error(
    status_code: int,
    detail: str,
    request_id: str,
    *,
    problem_type: str = "about:blank",
    missing: list[str] | None = None,
) -> ErrorResponse:
    return ErrorResponse(
        type=problem_type,
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=request_id,
        missing=missing or [],
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details."""
    body = _build_error(exc.status_code, str(exc.detail), _request_id(request))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors to RFC 7807 Problem Details."""
    body = _build_error(422, str(exc.errors()), _request_id(request))
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    """Map rejected workflow operations to Problem Details."""
    request_id = _request_id(request)
    status_code, problem_type = _WORKFLOW_ERRORS.get(type(exc), (409, "workflow:rejected"))
    if status_code >= 500:
        logger.error("Workflow configuration error (request_id=%s): %s", request_id, exc)
        detail = "Workflow configuration error. The incident has been logged."
    else:
        detail = str(exc)
    missing = exc.missing if isinstance(exc, DocumentsIncompleteError) else None
    body = _build_error(status_code, detail, request_id, problem_type=problem_type, missing=missing)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(TrackingNumberExhaustedError)
async def tracking_number_exception_handler(request: Request, exc: TrackingNumberExhaustedError):
    request_id = _request_id(request)
    logger.error("Tracking number allocation failed (request_id=%s): %s", request_id, exc)
    body = _build_error(503, "Could not allocate a tracking number. Retry shortly.", request_id)
    return JSONResponse(status_code=503, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    request_id = _request_id(request)
    logger.exception("Unhandled exception (request_id=%s)", request_id)
    body = _build_error(500, "An unexpected error occurred.", request_id)
    return JSONResponse(status_code=500, content=body.model_dump())


app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(documents.router, prefix="/api/applications", tags=["documents"])
app.include_router(commissions.router, prefix="/api/commissions", tags=["commissions"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": f"Welcome to {settings.APP_NAME}"}
