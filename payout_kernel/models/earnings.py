"""
Module: payout_kernel.models.earnings
Responsibility: ORM persistence for earnings ledger entries.  One uniform row
    shape for all eight recipient types.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - UNIQUE(payment_id, line_number): a payment's ledger is written once.
      A second settlement attempt that somehow got past the payment CAS
      fails with IntegrityError instead of duplicating entries.
    - status moves calculated -> approved -> paid only through
      conditional_update() in EarningsLedgerService.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payout_kernel.db.base import TrackedBase, UUIDString
from payout_kernel.db.types import UTCDateTime
from payout_kernel.domain.earnings import EarningsEntry, EarningsStatus, RecipientType
from payout_kernel.domain.splits import PERCENTAGE_DECIMAL_PLACES


class EarningsEntryModel(TrackedBase):
    """One recipient's share of one settled payment."""

    __tablename__ = "earnings_ledger"

    __table_args__ = (
        UniqueConstraint("payment_id", "line_number", name="uq_earnings_payment_line"),
        Index("ix_earnings_status", "status"),
        Index("ix_earnings_recipient", "recipient_type", "recipient_id"),
        CheckConstraint("amount >= 0", name="ck_earnings_amount_non_negative"),
    )

    payment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("payments.id"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    recipient_type: Mapped[str] = mapped_column(String(50), nullable=False)
    recipient_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    recipient_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    department_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    percentage: Mapped[Decimal] = mapped_column(Numeric(9, PERCENTAGE_DECIMAL_PLACES), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def to_dto(self) -> EarningsEntry:
        return EarningsEntry(
            entry_id=self.id,
            payment_id=self.payment_id,
            line_number=self.line_number,
            recipient_type=RecipientType(self.recipient_type),
            recipient_id=self.recipient_id,
            amount=self.amount,
            percentage=self.percentage,
            status=EarningsStatus(self.status),
            created_at=self.created_at,
            approved_at=self.approved_at,
            paid_at=self.paid_at,
            recipient_name=self.recipient_name,
            department_id=self.department_id,
        )
