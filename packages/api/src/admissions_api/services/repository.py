# This project was developed with assistance from AI tools.
"""Persistence port used by the workflow services.

The engine only reaches the database through this class, so tests can hand it
a mock with the same methods.
"""

from admissions_db import (
    Application,
    AuditEvent,
    CommissionTracking,
    Document,
    DocumentRequest,
    Partner,
    ProgramInfo,
)
from admissions_db.enums import CommissionStatus
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .audit import add_audit_entry, get_events_by_application, verify_audit_chain


class WorkflowRepository:
    """SQLAlchemy-backed repository over one AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def get_application(
        self, application_id: int, *, for_update: bool = False
    ) -> Application | None:
        """Load an application with its history.

        With ``for_update`` the row is locked until the transaction ends, which
        serializes concurrent writers on the same application.
        """
        stmt = (
            select(Application)
            .where(Application.id == application_id)
            .options(selectinload(Application.history))
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def tracking_number_exists(self, tracking_number: str) -> bool:
        stmt = select(func.count()).select_from(Application).where(
            Application.tracking_number == tracking_number
        )
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def list_applications_in_statuses(
        self, statuses: list[str], *, limit: int | None = None
    ) -> list[Application]:
        stmt = (
            select(Application)
            .where(Application.current_status.in_(statuses))
            .order_by(Application.last_status_change_at.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def get_documents(self, application_id: int) -> list[Document]:
        stmt = (
            select(Document)
            .where(Document.application_id == application_id)
            .order_by(Document.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_document(self, application_id: int, document_id: int) -> Document | None:
        stmt = select(Document).where(
            Document.id == document_id,
            Document.application_id == application_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_document_request(self, application_id: int, request_id: int) -> DocumentRequest | None:
        stmt = select(DocumentRequest).where(
            DocumentRequest.id == request_id,
            DocumentRequest.application_id == application_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_document_requests(self, application_id: int) -> list[DocumentRequest]:
        stmt = (
            select(DocumentRequest)
            .where(DocumentRequest.application_id == application_id)
            .options(selectinload(DocumentRequest.requirements))
            .order_by(DocumentRequest.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Partners, programs, commissions
    # ------------------------------------------------------------------

    async def get_partner(self, partner_id: int | None) -> Partner | None:
        if partner_id is None:
            return None
        return await self.session.get(Partner, partner_id)

    async def get_program_info(self, program_info_id: int | None) -> ProgramInfo | None:
        if program_info_id is None:
            return None
        return await self.session.get(ProgramInfo, program_info_id)

    async def get_commission_for_application(
        self, application_id: int
    ) -> CommissionTracking | None:
        stmt = (
            select(CommissionTracking)
            .where(CommissionTracking.application_id == application_id)
            .options(selectinload(CommissionTracking.partner))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_commissions(self, partner_id: int | None = None) -> list[CommissionTracking]:
        stmt = select(CommissionTracking).order_by(CommissionTracking.id.asc())
        if partner_id is not None:
            stmt = stmt.where(CommissionTracking.partner_id == partner_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_paid_commissions(self, partner_id: int) -> int:
        stmt = select(func.count()).select_from(CommissionTracking).where(
            CommissionTracking.partner_id == partner_id,
            CommissionTracking.status == CommissionStatus.PAID,
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def add(self, obj) -> None:
        self.session.add(obj)

    async def flush(self) -> None:
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def add_audit_entry(self, **kwargs) -> AuditEvent | None:
        """Best-effort audit write; see ``services.audit.add_audit_entry``."""
        return await add_audit_entry(self.session, **kwargs)

    async def verify_audit_chain(self) -> dict:
        return await verify_audit_chain(self.session)

    async def get_audit_events(self, application_id: int) -> list[AuditEvent]:
        return await get_events_by_application(self.session, application_id)
