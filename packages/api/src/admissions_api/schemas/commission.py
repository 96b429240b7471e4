# This project was developed with assistance from AI tools.
"""Commission calculation and dashboard schemas."""

from datetime import datetime
from decimal import Decimal

from admissions_db.enums import CommissionStatus, PartnerTier, TransferDisputeReason
from pydantic import BaseModel, ConfigDict


class CommissionBreakdown(BaseModel):
    """Result of a commission calculation.

    ``base`` already includes the tier multiplier; ``raw_base`` does not.
    ``total`` equals ``raw_base * tier_multiplier + bonus``.
    """

    model_config = ConfigDict(frozen=True)

    raw_base: Decimal
    tier_multiplier: Decimal
    base: Decimal
    bonus: Decimal
    total: Decimal


class CommissionTrackingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    application_id: int
    partner_id: int | None = None
    tuition_fee: Decimal
    commission_percentage: Decimal
    partner_tier: PartnerTier
    tier_multiplier: Decimal
    base_commission: Decimal
    bonus_commission: Decimal
    commission_amount: Decimal
    currency: str = "USD"
    status: CommissionStatus
    enrollment_date: datetime
    approved_at: datetime | None = None
    released_at: datetime | None = None
    paid_at: datetime | None = None
    payment_method: str | None = None
    payment_reference: str | None = None
    dispute_reason: str | None = None
    dispute_reason_code: TransferDisputeReason | None = None


class PendingStats(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")
    oldest_days: int = 0


class ApprovedStats(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")
    average_days_to_approve: float = 0.0


class ReleasedStats(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")


class PaidStats(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")
    this_month: Decimal = Decimal("0")


class CommissionPipelineStats(BaseModel):
    """Admin dashboard view of every commission record by lifecycle status."""

    pending: PendingStats
    approved: ApprovedStats
    released: ReleasedStats
    paid: PaidStats
    disputed_count: int = 0


class CommissionSummary(BaseModel):
    """Earnings summary, across all partners or for one partner."""

    partner_id: int | None = None
    total_earned: Decimal = Decimal("0")
    pending_review: Decimal = Decimal("0")
    awaiting_payment: Decimal = Decimal("0")
    this_month: Decimal = Decimal("0")
    total_students: int = 0
    total_commissions: int = 0
