"""
Earnings ledger domain types.

One ledger row shape for every kind of recipient.  ``RecipientType`` is the
only place the eight recipient kinds are enumerated; the calculator, the
ledger service and the reports are uniform over it.

Lifecycle: ``calculated -> approved -> paid``.  No skipping, no reversal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class EarningsStatus(str, Enum):
    """Ledger entry lifecycle states."""

    CALCULATED = "calculated"
    APPROVED = "approved"
    PAID = "paid"


EARNINGS_TRANSITIONS: dict[EarningsStatus, frozenset[EarningsStatus]] = {
    EarningsStatus.CALCULATED: frozenset({EarningsStatus.APPROVED}),
    EarningsStatus.APPROVED: frozenset({EarningsStatus.PAID}),
    EarningsStatus.PAID: frozenset(),
}


class RecipientType(str, Enum):
    """Who a share of a settled payment is owed to."""

    BUILDER = "builder"
    COHORT_MEMBER = "cohort_member"
    PRODUCTION_LEARNER = "production_learner"
    DEPARTMENT = "department"
    INSTITUTION = "institution"
    COUNCIL = "council"
    INFRASTRUCTURE = "infrastructure"
    REFERRAL_BONUS = "referral_bonus"


@dataclass(frozen=True)
class EarningsEntry:
    """Immutable read view of one ledger row."""

    entry_id: UUID
    payment_id: UUID
    line_number: int
    recipient_type: RecipientType
    recipient_id: UUID | None
    amount: Decimal
    percentage: Decimal
    status: EarningsStatus
    created_at: datetime
    approved_at: datetime | None = None
    paid_at: datetime | None = None
    recipient_name: str | None = None
    department_id: UUID | None = None
