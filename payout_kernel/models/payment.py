"""
Module: payout_kernel.models.payment
Responsibility: ORM persistence for incoming payments, including the
    structured review hold.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - status changes ONLY through conditional_update() in PaymentService /
      SettlementService; the ORM attribute is never assigned for a
      transition.
    - The three override_* columns are NULL together or set together
      (CHECK constraint).
    - paid_at is NOT NULL iff status = 'received' (CHECK constraint).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payout_kernel.db.base import TrackedBase, UUIDString
from payout_kernel.db.types import UTCDateTime
from payout_kernel.domain.payment import (
    PaymentOverride,
    PaymentSnapshot,
    PaymentStatus,
    PaymentType,
    SourceKind,
)


class PaymentModel(TrackedBase):
    """One incoming payment against a funding source."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("ix_payments_status_created", "status", "created_at"),
        Index("ix_payments_source", "source_kind", "source_id"),
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        CheckConstraint(
            "(override_set_at IS NULL AND override_reason IS NULL AND override_set_by IS NULL)"
            " OR (override_set_at IS NOT NULL AND override_reason IS NOT NULL"
            " AND override_set_by IS NOT NULL)",
            name="ck_payments_override_complete",
        ),
        CheckConstraint(
            "(status = 'received') = (paid_at IS NOT NULL)",
            name="ck_payments_paid_at_iff_received",
        ),
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_type: Mapped[str] = mapped_column(String(50), nullable=False)
    source_kind: Mapped[str] = mapped_column(String(50), nullable=False)
    source_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    override_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    override_set_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    override_set_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    @property
    def override(self) -> PaymentOverride | None:
        if self.override_set_at is None:
            return None
        return PaymentOverride(
            reason=self.override_reason,
            set_by=self.override_set_by,
            set_at=self.override_set_at,
        )

    def to_dto(self) -> PaymentSnapshot:
        return PaymentSnapshot(
            payment_id=self.id,
            amount=self.amount,
            status=PaymentStatus(self.status),
            payment_type=PaymentType(self.payment_type),
            source_kind=SourceKind(self.source_kind),
            source_id=self.source_id,
            created_at=self.created_at,
            due_date=self.due_date,
            paid_at=self.paid_at,
            override=self.override,
            payment_method=self.payment_method,
            reference_number=self.reference_number,
            notes=self.notes,
            recorded_by=self.created_by_id,
        )
