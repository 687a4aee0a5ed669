"""
PaymentSelector -- read-only payment queries.

Monthly batch report, dry-run sweep status, pending countdown and
status totals.  Every method is side-effect free.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from payout_kernel.domain.payment import (
    PaymentSnapshot,
    PaymentStatus,
    hours_remaining,
    is_settlement_eligible,
)
from payout_kernel.models.payment import PaymentModel
from payout_kernel.selectors.base import BaseSelector, month_bounds, month_name

ZERO = Decimal("0")


@dataclass(frozen=True)
class MonthlyBatchReport:
    """Payments created in one calendar month plus summary counts."""

    month: str
    year: int
    payments: tuple[PaymentSnapshot, ...]
    total_payments: int
    total_amount: Decimal
    received_count: int
    pending_count: int
    overdue_count: int


@dataclass(frozen=True)
class BatchStatus:
    """What a sweep would do right now, without doing it."""

    total_pending: int
    eligible_count: int
    flagged_count: int
    total_amount: Decimal
    eligible_amount: Decimal
    oldest_payment_age_hours: float


@dataclass(frozen=True)
class PendingPaymentView:
    """A pending payment with its time left until automatic settlement."""

    payment: PaymentSnapshot
    hours_remaining: float
    is_flagged: bool
    is_eligible: bool


@dataclass(frozen=True)
class PaymentStats:
    """Amount totals by status, plus the current month."""

    total_received: Decimal
    total_pending: Decimal
    this_month_received: Decimal
    this_month_pending: Decimal
    by_status: dict[PaymentStatus, Decimal] = field(default_factory=dict)


class PaymentSelector(BaseSelector):
    """Read-only payment queries."""

    def get(self, payment_id: UUID) -> PaymentSnapshot | None:
        model = self.session.execute(
            select(PaymentModel).where(PaymentModel.id == payment_id)
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def list_pending(self) -> list[PaymentSnapshot]:
        """All pending payments, oldest first."""
        models = self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.status == PaymentStatus.PENDING.value)
            .order_by(PaymentModel.created_at, PaymentModel.id)
        ).scalars().all()
        return [m.to_dto() for m in models]

    def monthly_batch(self, month: int, year: int) -> MonthlyBatchReport:
        """Payments created in ``month``/``year`` (UTC), newest first."""
        start, end = month_bounds(month, year)
        models = self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.created_at >= start, PaymentModel.created_at < end)
            .order_by(PaymentModel.created_at.desc())
        ).scalars().all()
        payments = tuple(m.to_dto() for m in models)

        def count(status: PaymentStatus) -> int:
            return sum(1 for p in payments if p.status == status)

        return MonthlyBatchReport(
            month=month_name(month),
            year=year,
            payments=payments,
            total_payments=len(payments),
            total_amount=sum((p.amount for p in payments), ZERO),
            received_count=count(PaymentStatus.RECEIVED),
            pending_count=count(PaymentStatus.PENDING),
            overdue_count=count(PaymentStatus.OVERDUE),
        )

    def batch_status(self, now: datetime, window: timedelta) -> BatchStatus:
        """Dry run of the settlement sweep."""
        pending = self.list_pending()
        eligible = [
            p for p in pending
            if is_settlement_eligible(p.status, p.created_at, now, window, p.override)
        ]
        oldest_hours = 0.0
        if pending:
            oldest_hours = round((now - pending[0].created_at).total_seconds() / 3600, 1)

        return BatchStatus(
            total_pending=len(pending),
            eligible_count=len(eligible),
            flagged_count=sum(1 for p in pending if p.is_flagged),
            total_amount=sum((p.amount for p in pending), ZERO),
            eligible_amount=sum((p.amount for p in eligible), ZERO),
            oldest_payment_age_hours=oldest_hours,
        )

    def pending_with_countdown(self, now: datetime, window: timedelta) -> list[PendingPaymentView]:
        return [
            PendingPaymentView(
                payment=p,
                hours_remaining=hours_remaining(p.created_at, now, window),
                is_flagged=p.is_flagged,
                is_eligible=is_settlement_eligible(p.status, p.created_at, now, window, p.override),
            )
            for p in self.list_pending()
        ]

    def payment_stats(self, now: datetime) -> PaymentStats:
        """Totals by status.  Invoiced counts as pending money."""
        month_start, _ = month_bounds(now.month, now.year)
        rows = self.session.execute(
            select(PaymentModel.amount, PaymentModel.status, PaymentModel.created_at)
        ).all()

        by_status = {status: ZERO for status in PaymentStatus}
        total_received = total_pending = ZERO
        month_received = month_pending = ZERO
        for amount, status_value, created_at in rows:
            status = PaymentStatus(status_value)
            by_status[status] += amount
            this_month = created_at >= month_start
            if status == PaymentStatus.RECEIVED:
                total_received += amount
                if this_month:
                    month_received += amount
            elif status in (PaymentStatus.PENDING, PaymentStatus.INVOICED):
                total_pending += amount
                if this_month:
                    month_pending += amount

        return PaymentStats(
            total_received=total_received,
            total_pending=total_pending,
            this_month_received=month_received,
            this_month_pending=month_pending,
            by_status=by_status,
        )
