"""
payout_batch -- the automatic settlement sweep.

Run from cron with ``python -m payout_batch sweep``; ``python -m
payout_batch status`` prints what the next sweep would do.
"""

from payout_batch.domain.types import SweepItemResult, SweepItemStatus, SweepResult
from payout_batch.services.sweep import SettlementSweep
from payout_batch.services.trigger import run_settlement_sweep

__all__ = [
    "SettlementSweep",
    "SweepItemResult",
    "SweepItemStatus",
    "SweepResult",
    "run_settlement_sweep",
]
