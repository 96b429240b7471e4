# This project was developed with assistance from AI tools.
"""Commission engine.

Computes the partner commission once a student's enrollment is confirmed and
drives the CommissionTracking lifecycle:

    pending -> approved -> paid                 (admin records payment)
    pending -> approved -> released -> paid     (partner confirms receipt)
    pending | approved | released -> disputed -> approved | released
    pending -> cancelled

Also provides the dashboard aggregates over all tracking rows.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from admissions_db import Application, CommissionTracking, Partner
from admissions_db.enums import CommissionStatus, PartnerTier, TransferDisputeReason

from ..schemas.commission import (
    ApprovedStats,
    CommissionBreakdown,
    CommissionPipelineStats,
    CommissionSummary,
    PaidStats,
    PendingStats,
    ReleasedStats,
)
from ..workflow.errors import (
    InvalidCommissionStateError,
    MissingProgramOrPartnerError,
    MissingReasonError,
)

logger = logging.getLogger(__name__)

TIER_MULTIPLIERS: dict[PartnerTier, Decimal] = {
    PartnerTier.BRONZE: Decimal("1.0"),
    PartnerTier.SILVER: Decimal("1.1"),
    PartnerTier.GOLD: Decimal("1.2"),
    PartnerTier.PLATINUM: Decimal("1.3"),
}

# (conversion rate strictly above, bonus share of the unmultiplied base)
BONUS_THRESHOLDS: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("85"), Decimal("0.05")),
    (Decimal("80"), Decimal("0.025")),
)

# Lifetime paid commissions needed to reach each tier
TIER_THRESHOLDS: tuple[tuple[int, PartnerTier], ...] = (
    (50, PartnerTier.PLATINUM),
    (25, PartnerTier.GOLD),
    (10, PartnerTier.SILVER),
    (0, PartnerTier.BRONZE),
)

_CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def calculate_commission(
    tuition_fee,
    commission_percentage,
    partner_tier: PartnerTier | str,
    partner_conversion_rate,
) -> CommissionBreakdown:
    """Compute a commission. Pure: the same inputs always give the same result.

    Args:
        tuition_fee: Program tuition.
        commission_percentage: Percentage of tuition paid as commission.
        partner_tier: Partner tier; selects the multiplier.
        partner_conversion_rate: Partner conversion rate in percent; above 80
            or 85 earns a bonus on the unmultiplied base.

    Returns:
        CommissionBreakdown where ``base`` includes the tier multiplier and
        ``total = base + bonus``.
    """
    raw_base = _decimal(tuition_fee) * _decimal(commission_percentage) / Decimal("100")
    multiplier = TIER_MULTIPLIERS[PartnerTier(partner_tier)]

    rate = _decimal(partner_conversion_rate or 0)
    bonus_share = Decimal("0")
    for threshold, share in BONUS_THRESHOLDS:
        if rate > threshold:
            bonus_share = share
            break

    base = _money(raw_base * multiplier)
    bonus = _money(raw_base * bonus_share)
    return CommissionBreakdown(
        raw_base=_money(raw_base),
        tier_multiplier=multiplier,
        base=base,
        bonus=bonus,
        total=base + bonus,
    )


def tier_for_paid_count(paid_count: int) -> PartnerTier:
    for minimum, tier in TIER_THRESHOLDS:
        if paid_count >= minimum:
            return tier
    return PartnerTier.BRONZE


def _require(
    tracking: CommissionTracking,
    operation: str,
    target: CommissionStatus,
    only_from: Iterable[CommissionStatus] | None = None,
) -> None:
    """Check the row may move to ``target``, optionally narrowed to ``only_from``."""
    allowed = frozenset(
        source for source, targets in CommissionStatus.valid_transitions().items() if target in targets
    )
    if only_from is not None:
        allowed &= frozenset(only_from)
    current = CommissionStatus(tracking.status)
    if current not in allowed:
        raise InvalidCommissionStateError(operation, current.value, [s.value for s in allowed])


def _ensure_tz(dt: datetime | None) -> datetime | None:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class CommissionEngine:
    """Creates and advances CommissionTracking rows.

    Lifecycle methods mutate the loaded row (and its partner) in place; the
    caller owns the transaction.
    """

    def __init__(self, repository, *, clock: Callable[[], datetime] | None = None):
        self._repo = repository
        self._now = clock or (lambda: datetime.now(UTC))

    calculate_commission = staticmethod(calculate_commission)

    async def create_tracking(
        self, application: Application, enrollment_date: datetime
    ) -> CommissionTracking:
        """Create the pending commission for an enrolled application.

        Idempotent: an existing row for the application is returned unchanged.

        Raises:
            MissingProgramOrPartnerError: partner or program terms not found.
        """
        existing = await self._repo.get_commission_for_application(application.id)
        if existing is not None:
            logger.info("Commission for application %s already exists (id=%s)", application.id, existing.id)
            return existing

        partner = await self._repo.get_partner(application.partner_id)
        if partner is None:
            raise MissingProgramOrPartnerError(application.id, "partner")
        program = await self._repo.get_program_info(application.program_info_id)
        if program is None:
            raise MissingProgramOrPartnerError(application.id, "program")

        tier = PartnerTier(partner.tier or PartnerTier.BRONZE)
        breakdown = calculate_commission(
            program.tuition_fee,
            program.commission_percentage,
            tier,
            partner.average_conversion_rate,
        )

        tracking = CommissionTracking(
            application_id=application.id,
            partner_id=partner.id,
            tuition_fee=_decimal(program.tuition_fee),
            commission_percentage=_decimal(program.commission_percentage),
            partner_tier=tier,
            tier_multiplier=breakdown.tier_multiplier,
            base_commission=breakdown.base,
            bonus_commission=breakdown.bonus,
            commission_amount=breakdown.total,
            currency=program.currency or "USD",
            status=CommissionStatus.PENDING,
            enrollment_date=enrollment_date,
        )
        tracking.partner = partner
        self._repo.add(tracking)

        application.commission_status = CommissionStatus.EARNED
        application.commission_percentage = tracking.commission_percentage
        application.estimated_commission = breakdown.total
        partner.commission_pending = _decimal(partner.commission_pending or 0) + breakdown.total

        logger.info(
            "Commission created for application %s: %s %s (tier=%s)",
            application.id,
            breakdown.total,
            tracking.currency,
            tier.value,
        )
        return tracking

    def approve(self, tracking: CommissionTracking, admin_id: str, notes: str | None = None) -> None:
        _require(tracking, "approve", CommissionStatus.APPROVED, only_from={CommissionStatus.PENDING})
        tracking.status = CommissionStatus.APPROVED
        tracking.approved_by = admin_id
        tracking.approved_at = self._now()
        tracking.approval_notes = notes

    def resolve_dispute(self, tracking: CommissionTracking, admin_id: str, notes: str | None = None) -> None:
        _require(tracking, "resolve", CommissionStatus.APPROVED, only_from={CommissionStatus.DISPUTED})
        tracking.status = CommissionStatus.APPROVED
        tracking.approved_by = admin_id
        tracking.approved_at = tracking.approved_at or self._now()
        tracking.approval_notes = notes

    def release(
        self,
        tracking: CommissionTracking,
        admin_id: str,
        payment_method: str | None = None,
        reference: str | None = None,
    ) -> None:
        """Record that the transfer was sent; the partner confirms or disputes it."""
        _require(tracking, "release", CommissionStatus.RELEASED)
        tracking.status = CommissionStatus.RELEASED
        tracking.released_by = admin_id
        tracking.released_at = self._now()
        tracking.payment_method = payment_method
        tracking.payment_reference = reference

    def mark_paid(
        self,
        tracking: CommissionTracking,
        admin_id: str,
        payment_method: str | None = None,
        reference: str | None = None,
    ) -> None:
        _require(tracking, "mark paid", CommissionStatus.PAID, only_from={CommissionStatus.APPROVED})
        tracking.payment_method = payment_method
        tracking.payment_reference = reference
        self._settle(tracking, paid_by=admin_id)

    def confirm_receipt(self, tracking: CommissionTracking, partner_user_id: str) -> None:
        _require(tracking, "confirm", CommissionStatus.PAID, only_from={CommissionStatus.RELEASED})
        self._settle(tracking, paid_by=partner_user_id)

    def _settle(self, tracking: CommissionTracking, *, paid_by: str) -> None:
        tracking.status = CommissionStatus.PAID
        tracking.paid_by = paid_by
        tracking.paid_at = self._now()

        partner: Partner | None = tracking.partner
        if partner is None:
            logger.warning("Commission %s paid without a partner record", tracking.id)
            return
        amount = _decimal(tracking.commission_amount)
        partner.total_commission_earned = _decimal(partner.total_commission_earned or 0) + amount
        partner.commission_pending = max(Decimal("0"), _decimal(partner.commission_pending or 0) - amount)

    def dispute(self, tracking: CommissionTracking, reason: str | None) -> None:
        if not (reason or "").strip():
            raise MissingReasonError("disputed")
        _require(tracking, "dispute", CommissionStatus.DISPUTED)
        tracking.status = CommissionStatus.DISPUTED
        tracking.dispute_reason = reason.strip()
        tracking.dispute_reason_code = None
        tracking.disputed_at = self._now()

    def dispute_transfer(
        self,
        tracking: CommissionTracking,
        reason_code: TransferDisputeReason,
        details: str | None = None,
    ) -> None:
        """Partner reports a problem with a released transfer.

        ``other`` needs free-text details; other codes fall back to their label.
        """
        _require(
            tracking, "dispute transfer", CommissionStatus.DISPUTED, only_from={CommissionStatus.RELEASED}
        )
        code = TransferDisputeReason(reason_code)
        text = (details or "").strip()
        if code == TransferDisputeReason.OTHER and not text:
            raise MissingReasonError("commission_transfer_disputed")
        tracking.status = CommissionStatus.DISPUTED
        tracking.dispute_reason_code = code
        tracking.dispute_reason = text or code.label
        tracking.disputed_at = self._now()

    def cancel(self, tracking: CommissionTracking, reason: str | None) -> None:
        if not (reason or "").strip():
            raise MissingReasonError("cancelled")
        _require(tracking, "cancel", CommissionStatus.CANCELLED)
        tracking.status = CommissionStatus.CANCELLED
        tracking.cancel_reason = reason.strip()
        tracking.cancelled_at = self._now()

        partner = tracking.partner
        if partner is not None:
            amount = _decimal(tracking.commission_amount)
            partner.commission_pending = max(Decimal("0"), _decimal(partner.commission_pending or 0) - amount)

    async def recalculate_partner_tier(self, partner: Partner) -> PartnerTier:
        """Move the partner to the tier matching its lifetime paid commissions."""
        paid_count = await self._repo.count_paid_commissions(partner.id)
        tier = tier_for_paid_count(paid_count)
        if tier != PartnerTier(partner.tier):
            logger.info("Partner %s tier %s -> %s", partner.id, PartnerTier(partner.tier).value, tier.value)
            partner.tier = tier
        return tier

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def get_pipeline_stats(self) -> CommissionPipelineStats:
        records = await self._repo.list_commissions()
        return summarize_pipeline(records, self._now())

    async def get_summary(self, partner_id: int | None = None) -> CommissionSummary:
        records = await self._repo.list_commissions(partner_id)
        return summarize_partner(records, self._now(), partner_id=partner_id)


def _total(records: Iterable[CommissionTracking]) -> Decimal:
    return sum((_decimal(r.commission_amount) for r in records), Decimal("0"))


def _in_month(dt: datetime | None, now: datetime) -> bool:
    dt = _ensure_tz(dt)
    return dt is not None and dt.year == now.year and dt.month == now.month


def summarize_pipeline(records: Iterable[CommissionTracking], now: datetime) -> CommissionPipelineStats:
    """Group commission rows by status for the admin dashboard."""
    by_status: dict[CommissionStatus, list[CommissionTracking]] = {s: [] for s in CommissionStatus}
    for record in records:
        by_status[CommissionStatus(record.status)].append(record)

    pending = by_status[CommissionStatus.PENDING]
    oldest_days = 0
    for record in pending:
        created = _ensure_tz(record.created_at or record.enrollment_date)
        if created is not None:
            oldest_days = max(oldest_days, (now - created).days)

    approved = by_status[CommissionStatus.APPROVED]
    approve_days = [
        (_ensure_tz(r.approved_at) - _ensure_tz(r.created_at or r.enrollment_date)).total_seconds() / 86400
        for r in approved
        if r.approved_at is not None and (r.created_at or r.enrollment_date) is not None
    ]

    paid = by_status[CommissionStatus.PAID]
    return CommissionPipelineStats(
        pending=PendingStats(count=len(pending), total=_total(pending), oldest_days=oldest_days),
        approved=ApprovedStats(
            count=len(approved),
            total=_total(approved),
            average_days_to_approve=round(sum(approve_days) / len(approve_days), 1) if approve_days else 0.0,
        ),
        released=ReleasedStats(
            count=len(by_status[CommissionStatus.RELEASED]),
            total=_total(by_status[CommissionStatus.RELEASED]),
        ),
        paid=PaidStats(
            count=len(paid),
            total=_total(paid),
            this_month=_total(r for r in paid if _in_month(r.paid_at, now)),
        ),
        disputed_count=len(by_status[CommissionStatus.DISPUTED]),
    )


def summarize_partner(
    records: Iterable[CommissionTracking],
    now: datetime,
    *,
    partner_id: int | None = None,
) -> CommissionSummary:
    """Earnings summary over the given rows (one partner's, or everyone's)."""
    records = [r for r in records if CommissionStatus(r.status) != CommissionStatus.CANCELLED]
    paid = [r for r in records if CommissionStatus(r.status) == CommissionStatus.PAID]
    return CommissionSummary(
        partner_id=partner_id,
        total_earned=_total(paid),
        pending_review=_total(
            r for r in records
            if CommissionStatus(r.status) in {CommissionStatus.PENDING, CommissionStatus.DISPUTED}
        ),
        awaiting_payment=_total(
            r for r in records
            if CommissionStatus(r.status) in {CommissionStatus.APPROVED, CommissionStatus.RELEASED}
        ),
        this_month=_total(r for r in paid if _in_month(r.paid_at, now)),
        total_students=len({r.application_id for r in records}),
        total_commissions=len(records),
    )
