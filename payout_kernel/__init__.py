"""
Payout Kernel

Time-driven payment settlement and revenue-split earnings ledger:
- Conditional (compare-and-swap) state transitions
- Manual review holds that dominate automatic settlement
- Multi-party split fan-out that reconciles to the payment amount
- Configured approval-tier gate
"""

__version__ = "0.1.0"
