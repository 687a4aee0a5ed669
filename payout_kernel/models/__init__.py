"""ORM models for the payout kernel."""

from payout_kernel.models.audit_event import AuditAction, AuditEvent
from payout_kernel.models.earnings import EarningsEntryModel
from payout_kernel.models.payment import PaymentModel
from payout_kernel.models.split_policy import SplitPolicyLineModel, SplitPolicyModel

__all__ = [
    "AuditAction",
    "AuditEvent",
    "EarningsEntryModel",
    "PaymentModel",
    "SplitPolicyLineModel",
    "SplitPolicyModel",
]
