"""
Module: payout_kernel.models.audit_event
Responsibility: ORM persistence for the append-only audit trail of payment,
    override and ledger state changes.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Append-only: AuditorService only ever INSERTs; rows are never updated
      or deleted.
    - payload_hash = SHA-256 of the canonical JSON payload, so a payload
      edited after the fact is detectable.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from payout_kernel.db.base import Base, UUIDString
from payout_kernel.db.types import UTCDateTime


class AuditAction(str, Enum):
    """Types of auditable actions."""

    # Payment lifecycle
    PAYMENT_RECORDED = "payment_recorded"
    PAYMENT_SETTLED = "payment_settled"
    PAYMENT_STATUS_CHANGED = "payment_status_changed"

    # Review holds
    PAYMENT_FLAGGED = "payment_flagged"
    PAYMENT_UNFLAGGED = "payment_unflagged"

    # Ledger lifecycle
    EARNINGS_APPROVED = "earnings_approved"
    EARNINGS_PAID = "earnings_paid"

    # Policy
    SPLIT_POLICY_REGISTERED = "split_policy_registered"


class AuditEvent(Base):
    """One audited state change."""

    __tablename__ = "audit_events"

    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_action", "action"),
        Index("idx_audit_occurred", "occurred_at"),
    )

    # e.g. "Payment", "EarningsEntry", "SplitPolicy"
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<AuditEvent {self.action} on {self.entity_type}:{self.entity_id}>"
