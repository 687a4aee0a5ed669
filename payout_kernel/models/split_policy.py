"""
Module: payout_kernel.models.split_policy
Responsibility: ORM persistence for split policies registered per funding
    source by the sale workflow.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - One policy per (source_kind, source_id): re-registering replaces the
      lines of the existing policy.
    - Percentages are stored at the scale validate_policy enforces, and are
      validated by SplitPolicyService before insert and
      again by the calculator at settlement time.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payout_kernel.db.base import TrackedBase, UUIDString
from payout_kernel.domain.earnings import RecipientType
from payout_kernel.domain.splits import PERCENTAGE_DECIMAL_PLACES, SplitLine, SplitPolicy


class SplitPolicyModel(TrackedBase):
    """Registered split policy for one funding source."""

    __tablename__ = "split_policies"

    __table_args__ = (
        UniqueConstraint("source_kind", "source_id", name="uq_split_policy_source"),
    )

    source_kind: Mapped[str] = mapped_column(String(50), nullable=False)
    source_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    variant: Mapped[str | None] = mapped_column(String(50), nullable=True)
    referral_bonus_percentage: Mapped[Decimal | None] = mapped_column(
        Numeric(9, PERCENTAGE_DECIMAL_PLACES), nullable=True,
    )
    referral_recipient_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    lines: Mapped[list["SplitPolicyLineModel"]] = relationship(
        "SplitPolicyLineModel",
        back_populates="policy",
        cascade="all, delete-orphan",
        order_by="SplitPolicyLineModel.line_number",
    )

    def to_dto(self) -> SplitPolicy:
        return SplitPolicy(
            key=f"{self.source_kind}:{self.source_id}",
            lines=tuple(line.to_dto() for line in self.lines),
            referral_bonus_percentage=self.referral_bonus_percentage,
            referral_recipient_id=self.referral_recipient_id,
        )


class SplitPolicyLineModel(TrackedBase):
    """One recipient line of a registered split policy."""

    __tablename__ = "split_policy_lines"

    __table_args__ = (
        UniqueConstraint("policy_id", "line_number", name="uq_split_policy_line"),
    )

    policy_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("split_policies.id", ondelete="CASCADE"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    recipient_type: Mapped[str] = mapped_column(String(50), nullable=False)
    recipient_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    recipient_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    department_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    percentage: Mapped[Decimal] = mapped_column(Numeric(9, PERCENTAGE_DECIMAL_PLACES), nullable=False)

    policy: Mapped[SplitPolicyModel] = relationship(
        "SplitPolicyModel", back_populates="lines",
    )

    def to_dto(self) -> SplitLine:
        return SplitLine(
            recipient_type=RecipientType(self.recipient_type),
            percentage=Decimal(self.percentage),
            recipient_id=self.recipient_id,
            recipient_name=self.recipient_name,
            department_id=self.department_id,
        )
