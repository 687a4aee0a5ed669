"""
payout_batch.domain.types -- frozen result types for the settlement sweep.

ZERO I/O.  Enum status fields and tuples for immutable collections.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from payout_kernel.domain.payment import PaymentSnapshot


class SweepItemStatus(str, Enum):
    """Outcome of one payment within a sweep."""

    SETTLED = "settled"  # pending -> received, ledger written
    SKIPPED = "skipped"  # CAS matched no row: handled or flagged concurrently
    FAILED = "failed"  # exception inside the item's SAVEPOINT


@dataclass(frozen=True)
class SweepCandidates:
    """The sweep's read phase: which pending payments looked eligible at ``now``."""

    now: datetime
    eligible: tuple[PaymentSnapshot, ...]
    flagged_count: int
    total_pending: int


@dataclass(frozen=True)
class SweepItemResult:
    item_index: int
    payment_id: UUID
    status: SweepItemStatus
    entry_count: int = 0
    error_code: str | None = None
    error_message: str | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class SweepResult:
    """Summary of one sweep.

    ``processed`` counts settlements made by this sweep.  ``flagged`` is the
    number of pending payments held by a review override when the sweep
    read them; it is informational and the sweep never changes it.
    """

    sweep_id: UUID
    processed: int
    flagged: int
    skipped: int
    failed: int
    total_pending: int
    items: tuple[SweepItemResult, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def eligible(self) -> int:
        return len(self.items)

    @property
    def failures(self) -> tuple[SweepItemResult, ...]:
        return tuple(i for i in self.items if i.status == SweepItemStatus.FAILED)
