"""Read-only selectors returning frozen DTOs."""

from payout_kernel.selectors.earnings_selector import (
    EarningsFilter,
    EarningsSelector,
    MonthlyEarningsReport,
    RecipientTotals,
    RecipientTypeSummary,
)
from payout_kernel.selectors.payment_selector import (
    BatchStatus,
    MonthlyBatchReport,
    PaymentSelector,
    PaymentStats,
    PendingPaymentView,
)

__all__ = [
    "BatchStatus",
    "EarningsFilter",
    "EarningsSelector",
    "MonthlyBatchReport",
    "MonthlyEarningsReport",
    "PaymentSelector",
    "PaymentStats",
    "PendingPaymentView",
    "RecipientTotals",
    "RecipientTypeSummary",
]
