"""Kernel services: every write path.  Services flush, never commit."""

from payout_kernel.services.approval_gate import ApprovalGate
from payout_kernel.services.auditor_service import AuditorService
from payout_kernel.services.earnings_service import EarningsLedgerService
from payout_kernel.services.override_service import OverrideRegistry
from payout_kernel.services.payment_service import PaymentService
from payout_kernel.services.settlement_service import SettlementOutcome, SettlementService
from payout_kernel.services.split_policy_service import SplitPolicyService, SplitTemplateCatalog

__all__ = [
    "ApprovalGate",
    "AuditorService",
    "EarningsLedgerService",
    "OverrideRegistry",
    "PaymentService",
    "SettlementOutcome",
    "SettlementService",
    "SplitPolicyService",
    "SplitTemplateCatalog",
]
