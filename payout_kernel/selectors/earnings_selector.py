"""
EarningsSelector -- read-only earnings ledger queries.

Filtered listing (status, recipient, department, originating payment
month), per-recipient-type summary, per-recipient totals and the monthly
earnings report.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from payout_kernel.domain.earnings import EarningsEntry, EarningsStatus, RecipientType
from payout_kernel.models.earnings import EarningsEntryModel
from payout_kernel.models.payment import PaymentModel
from payout_kernel.selectors.base import BaseSelector, month_bounds, month_name

ZERO = Decimal("0")


@dataclass(frozen=True)
class EarningsFilter:
    """All fields optional; unset fields do not filter.

    ``month``/``year`` select entries whose originating payment was created
    in that calendar month.  Both must be given together.
    """

    status: EarningsStatus | None = None
    recipient_type: RecipientType | None = None
    recipient_id: UUID | None = None
    department_id: UUID | None = None
    payment_id: UUID | None = None
    month: int | None = None
    year: int | None = None


@dataclass(frozen=True)
class RecipientTypeSummary:
    recipient_type: RecipientType
    total_calculated: Decimal
    total_approved: Decimal
    total_paid: Decimal
    entry_count: int


@dataclass(frozen=True)
class RecipientTotals:
    calculated: Decimal
    approved: Decimal
    paid: Decimal
    total: Decimal


@dataclass(frozen=True)
class MonthlyEarningsReport:
    """Ledger entries created (i.e. settled) in one calendar month."""

    month: str
    year: int
    by_recipient_type: dict[RecipientType, Decimal]
    total: Decimal
    entries: tuple[EarningsEntry, ...]


class EarningsSelector(BaseSelector):
    """Read-only earnings ledger queries."""

    def get(self, entry_id: UUID) -> EarningsEntry | None:
        model = self.session.execute(
            select(EarningsEntryModel).where(EarningsEntryModel.id == entry_id)
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def for_payment(self, payment_id: UUID) -> list[EarningsEntry]:
        return self.list_entries(EarningsFilter(payment_id=payment_id))

    def list_entries(self, filters: EarningsFilter | None = None) -> list[EarningsEntry]:
        filters = filters or EarningsFilter()
        stmt = select(EarningsEntryModel)

        if filters.status is not None:
            stmt = stmt.where(EarningsEntryModel.status == EarningsStatus(filters.status).value)
        if filters.recipient_type is not None:
            stmt = stmt.where(
                EarningsEntryModel.recipient_type == RecipientType(filters.recipient_type).value
            )
        if filters.recipient_id is not None:
            stmt = stmt.where(EarningsEntryModel.recipient_id == filters.recipient_id)
        if filters.department_id is not None:
            stmt = stmt.where(EarningsEntryModel.department_id == filters.department_id)
        if filters.payment_id is not None:
            stmt = stmt.where(EarningsEntryModel.payment_id == filters.payment_id)
        if (filters.month is None) != (filters.year is None):
            raise ValueError("month and year must be given together")
        if filters.month is not None:
            start, end = month_bounds(filters.month, filters.year)
            stmt = stmt.join(PaymentModel, PaymentModel.id == EarningsEntryModel.payment_id).where(
                PaymentModel.created_at >= start,
                PaymentModel.created_at < end,
            )

        stmt = stmt.order_by(
            EarningsEntryModel.created_at.desc(),
            EarningsEntryModel.payment_id,
            EarningsEntryModel.line_number,
        )
        return [m.to_dto() for m in self.session.execute(stmt).scalars().all()]

    def summary_by_recipient_type(self) -> list[RecipientTypeSummary]:
        """Totals per status for every recipient type present in the ledger."""
        rows = self.session.execute(
            select(
                EarningsEntryModel.recipient_type,
                EarningsEntryModel.status,
                EarningsEntryModel.amount,
            )
        ).all()

        totals: dict[RecipientType, dict[EarningsStatus, Decimal]] = {}
        counts: dict[RecipientType, int] = {}
        for recipient_value, status_value, amount in rows:
            recipient = RecipientType(recipient_value)
            bucket = totals.setdefault(recipient, {s: ZERO for s in EarningsStatus})
            bucket[EarningsStatus(status_value)] += amount
            counts[recipient] = counts.get(recipient, 0) + 1

        return [
            RecipientTypeSummary(
                recipient_type=recipient,
                total_calculated=bucket[EarningsStatus.CALCULATED],
                total_approved=bucket[EarningsStatus.APPROVED],
                total_paid=bucket[EarningsStatus.PAID],
                entry_count=counts[recipient],
            )
            for recipient, bucket in sorted(totals.items(), key=lambda kv: kv[0].value)
        ]

    def recipient_totals(self, recipient_type: RecipientType, recipient_id: UUID) -> RecipientTotals:
        rows = self.session.execute(
            select(EarningsEntryModel.status, EarningsEntryModel.amount).where(
                EarningsEntryModel.recipient_type == RecipientType(recipient_type).value,
                EarningsEntryModel.recipient_id == recipient_id,
            )
        ).all()
        by_status = {s: ZERO for s in EarningsStatus}
        for status_value, amount in rows:
            by_status[EarningsStatus(status_value)] += amount
        return RecipientTotals(
            calculated=by_status[EarningsStatus.CALCULATED],
            approved=by_status[EarningsStatus.APPROVED],
            paid=by_status[EarningsStatus.PAID],
            total=sum(by_status.values(), ZERO),
        )

    def monthly_report(self, month: int, year: int) -> MonthlyEarningsReport:
        start, end = month_bounds(month, year)
        models = self.session.execute(
            select(EarningsEntryModel)
            .where(EarningsEntryModel.created_at >= start, EarningsEntryModel.created_at < end)
            .order_by(EarningsEntryModel.created_at.desc(), EarningsEntryModel.line_number)
        ).scalars().all()
        entries = tuple(m.to_dto() for m in models)

        by_type: dict[RecipientType, Decimal] = {}
        for entry in entries:
            by_type[entry.recipient_type] = by_type.get(entry.recipient_type, ZERO) + entry.amount

        return MonthlyEarningsReport(
            month=month_name(month),
            year=year,
            by_recipient_type=by_type,
            total=sum((e.amount for e in entries), ZERO),
            entries=entries,
        )
