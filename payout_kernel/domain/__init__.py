"""
Pure domain layer.

This module contains frozen DTOs, status enums, transition tables and
calculation functions with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

Time enters only through an injected Clock.
"""

from payout_kernel.domain.approval_tier import (
    ApprovalTier,
    ApproverProfile,
    ApproverRole,
    can_approve,
    evaluate_approval_tier,
    required_approver_tier,
)
from payout_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payout_kernel.domain.earnings import (
    EARNINGS_TRANSITIONS,
    EarningsEntry,
    EarningsStatus,
    RecipientType,
)
from payout_kernel.domain.payment import (
    PAYMENT_TRANSITIONS,
    PaymentOverride,
    PaymentSnapshot,
    PaymentStatus,
    PaymentType,
    SourceKind,
    is_settlement_eligible,
)
from payout_kernel.domain.splits import (
    CalculatedSplit,
    SplitLine,
    SplitPolicy,
    apply_referral_bonus,
    calculate_splits,
    effective_policy,
)

__all__ = [
    "ApprovalTier",
    "ApproverProfile",
    "ApproverRole",
    "CalculatedSplit",
    "Clock",
    "DeterministicClock",
    "EARNINGS_TRANSITIONS",
    "EarningsEntry",
    "EarningsStatus",
    "PAYMENT_TRANSITIONS",
    "PaymentOverride",
    "PaymentSnapshot",
    "PaymentStatus",
    "PaymentType",
    "RecipientType",
    "SourceKind",
    "SplitLine",
    "SplitPolicy",
    "SystemClock",
    "apply_referral_bonus",
    "calculate_splits",
    "effective_policy",
    "can_approve",
    "evaluate_approval_tier",
    "is_settlement_eligible",
    "required_approver_tier",
]
