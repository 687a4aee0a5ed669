"""
Payment domain types (``payout_kernel.domain.payment``).

Responsibility
--------------
Pure value objects for incoming payments: status and type enums, the
transition table, the structured review hold, the read snapshot, and the
settlement eligibility rule.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  No imports from ``db/``,
``services/`` or ``selectors/``.

Invariants enforced
-------------------
* ``PAYMENT_TRANSITIONS`` lists every legal status edge.  ``received``,
  ``failed`` and ``overdue`` have no outgoing edges.
* A payment is settlement-eligible only when it is ``pending``, has been
  pending for at least the settlement window, and carries no override.
  The override dominates elapsed time unconditionally.
* ``paid_at`` is set if and only if status is ``received``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PaymentStatus(str, Enum):
    """Payment lifecycle states."""

    PENDING = "pending"
    INVOICED = "invoiced"  # Administrative marker before pending
    RECEIVED = "received"
    OVERDUE = "overdue"
    FAILED = "failed"


PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({
        PaymentStatus.RECEIVED,
        PaymentStatus.FAILED,
        PaymentStatus.OVERDUE,
    }),
    PaymentStatus.INVOICED: frozenset({PaymentStatus.PENDING}),
    PaymentStatus.RECEIVED: frozenset(),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.OVERDUE: frozenset(),
}


def can_transition(from_status: PaymentStatus, to_status: PaymentStatus) -> bool:
    """Whether ``from_status -> to_status`` is a legal edge."""
    return to_status in PAYMENT_TRANSITIONS.get(from_status, frozenset())


class PaymentType(str, Enum):
    """What the payment is for."""

    ADVANCE = "advance"
    MILESTONE = "milestone"
    COMPLETION = "completion"
    CONTRACT_SIGNING = "contract_signing"
    DEPLOYMENT = "deployment"
    ACCEPTANCE = "acceptance"
    MAINTENANCE_FEE = "maintenance_fee"


class SourceKind(str, Enum):
    """The funding context a payment belongs to."""

    PROJECT_PHASE = "project_phase"
    TRAINING_PROGRAM = "training_program"
    CONTENT_ORDER = "content_order"


@dataclass(frozen=True)
class PaymentOverride:
    """Manual review hold.  While present, automatic settlement is blocked."""

    reason: str
    set_by: UUID
    set_at: datetime


@dataclass(frozen=True)
class PaymentSnapshot:
    """Immutable read view of a payment row."""

    payment_id: UUID
    amount: Decimal
    status: PaymentStatus
    payment_type: PaymentType
    source_kind: SourceKind
    source_id: UUID
    created_at: datetime
    due_date: date | None = None
    paid_at: datetime | None = None
    override: PaymentOverride | None = None
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None
    recorded_by: UUID | None = None

    @property
    def is_flagged(self) -> bool:
        return self.override is not None


def is_settlement_eligible(
    status: PaymentStatus,
    created_at: datetime,
    now: datetime,
    window: timedelta,
    override: PaymentOverride | None,
) -> bool:
    """Pure eligibility rule evaluated by the settlement sweep.

    Eligible iff pending, ``now - created_at >= window`` and not flagged.
    """
    if status != PaymentStatus.PENDING:
        return False
    if override is not None:
        return False
    return now - created_at >= window


def hours_remaining(created_at: datetime, now: datetime, window: timedelta) -> float:
    """Hours until the window elapses, floored at zero, to one decimal."""
    remaining = window - (now - created_at)
    hours = max(0.0, remaining.total_seconds() / 3600)
    return round(hours, 1)
