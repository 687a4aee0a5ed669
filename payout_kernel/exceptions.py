"""
Typed exception hierarchy for the payout kernel.

Every error has a typed class (callers catch by type, never by message),
a machine-readable ``code`` class attribute, and structured attributes
carrying the offending identifiers.

    PayoutKernelError (base)
    |
    +-- PaymentError
    |   +-- PaymentNotFoundError
    |   +-- InvalidPaymentAmountError
    |   +-- InvalidOverrideError
    |
    +-- LedgerError
    |   +-- EarningsEntryNotFoundError
    |
    +-- SplitPolicyError
    |   +-- SplitPolicyViolationError
    |   +-- SplitPolicyNotFoundError
    |
    +-- ApprovalError
    |   +-- UnauthorizedApproverError
    |
    +-- ConfigurationError

Code            | When raised
----------------|-------------------------------------------------------
PAYMENT_NOT_FOUND          | Payment id does not exist
INVALID_PAYMENT_AMOUNT     | Amount is zero or negative
INVALID_OVERRIDE           | Flag requested without a reason
EARNINGS_ENTRY_NOT_FOUND   | Ledger entry id does not exist
SPLIT_POLICY_VIOLATION     | Percentages do not total 100, or a line is malformed
SPLIT_POLICY_NOT_FOUND     | No registered policy and no configured template
UNAUTHORIZED_APPROVER      | Approver's role/department cannot grant the tier
CONFIGURATION_ERROR        | Configuration file failed validation

A state-transition attempt against a record in the wrong state is NOT an
exception. It reports zero affected rows and the caller moves on.
"""

from decimal import Decimal


class PayoutKernelError(Exception):
    """
    Base exception for all payout kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYOUT_KERNEL_ERROR"


# Payment exceptions


class PaymentError(PayoutKernelError):
    """Base exception for payment errors."""

    code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """Payment with the given id does not exist."""

    code: str = "PAYMENT_NOT_FOUND"

    def __init__(self, payment_id: str):
        self.payment_id = str(payment_id)
        super().__init__(f"Payment not found: {payment_id}")


class InvalidPaymentAmountError(PaymentError):
    """Payment amount must be strictly positive."""

    code: str = "INVALID_PAYMENT_AMOUNT"

    def __init__(self, amount: Decimal | str):
        self.amount = str(amount)
        super().__init__(f"Payment amount must be positive, got {amount}")


class InvalidOverrideError(PaymentError):
    """A review hold was requested without a usable reason."""

    code: str = "INVALID_OVERRIDE"

    def __init__(self, payment_id: str, reason: str):
        self.payment_id = str(payment_id)
        self.reason = reason
        super().__init__(f"Invalid override for payment {payment_id}: {reason}")


# Ledger exceptions


class LedgerError(PayoutKernelError):
    """Base exception for earnings ledger errors."""

    code: str = "LEDGER_ERROR"


class EarningsEntryNotFoundError(LedgerError):
    """Earnings ledger entry with the given id does not exist."""

    code: str = "EARNINGS_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = str(entry_id)
        super().__init__(f"Earnings entry not found: {entry_id}")


# Split policy exceptions


class SplitPolicyError(PayoutKernelError):
    """Base exception for split policy errors."""

    code: str = "SPLIT_POLICY_ERROR"


class SplitPolicyViolationError(SplitPolicyError):
    """
    Split policy cannot be applied.

    Raised when percentages do not total exactly 100, or when a line is
    zero, negative, or duplicated.  The calculator fails closed: no ledger
    entries are written and the settlement is rolled back.
    """

    code: str = "SPLIT_POLICY_VIOLATION"

    def __init__(self, policy_key: str, total_percentage: Decimal | str, detail: str):
        self.policy_key = policy_key
        self.total_percentage = str(total_percentage)
        self.detail = detail
        super().__init__(
            f"Split policy {policy_key} is invalid "
            f"(total {total_percentage}%): {detail}"
        )


class SplitPolicyNotFoundError(SplitPolicyError):
    """No registered policy and no default template for the funding source."""

    code: str = "SPLIT_POLICY_NOT_FOUND"

    def __init__(self, source_kind: str, source_id: str, variant: str | None = None):
        self.source_kind = source_kind
        self.source_id = str(source_id)
        self.variant = variant
        super().__init__(
            f"No split policy for {source_kind}:{source_id}"
            + (f" (variant {variant})" if variant else "")
        )


# Approval exceptions


class ApprovalError(PayoutKernelError):
    """Base exception for approval gate errors."""

    code: str = "APPROVAL_ERROR"


class UnauthorizedApproverError(ApprovalError):
    """Approver's role or department cannot grant the required tier."""

    code: str = "UNAUTHORIZED_APPROVER"

    def __init__(self, actor_id: str, required_tier: str, role: str):
        self.actor_id = str(actor_id)
        self.required_tier = required_tier
        self.role = role
        super().__init__(
            f"Actor {actor_id} with role {role} cannot grant "
            f"{required_tier} approval"
        )


# Configuration exceptions


class ConfigurationError(PayoutKernelError):
    """Configuration file failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = list(errors)
        super().__init__(
            f"Configuration {source} is invalid:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )
