"""Pure sweep types."""

from payout_batch.domain.types import (
    SweepCandidates,
    SweepItemResult,
    SweepItemStatus,
    SweepResult,
)

__all__ = [
    "SweepCandidates",
    "SweepItemResult",
    "SweepItemStatus",
    "SweepResult",
]
