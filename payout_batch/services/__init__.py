from payout_batch.services.sweep import SettlementSweep
from payout_batch.services.trigger import build_settlement_sweep, run_settlement_sweep

__all__ = ["SettlementSweep", "build_settlement_sweep", "run_settlement_sweep"]
