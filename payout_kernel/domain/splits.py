"""
Revenue split calculator (``payout_kernel.domain.splits``).

Responsibility
--------------
Turns a settled payment amount and a split policy into one calculated
share per policy line.

Architecture position
---------------------
**Kernel domain layer** -- pure functions over frozen dataclasses.  Called
by ``SettlementService`` inside the settlement SAVEPOINT.

Invariants enforced
-------------------
* A policy is usable only if its percentages total exactly 100, every
  percentage is positive, and no (recipient_type, recipient_id) pair
  repeats.  Anything else raises ``SplitPolicyViolationError`` before a
  single share is computed.
* Shares are rounded to the money precision with ROUND_HALF_UP; the
  rounding remainder goes to the largest share (first such line on ties),
  so the shares always sum to the payment amount exactly.
* A referral bonus moves percentage points out of the department line into
  a separate ``referral_bonus`` line; the total stays 100.
* Percentages carry at most ``PERCENTAGE_DECIMAL_PLACES`` places, the scale
  they are stored at, so a policy reads back exactly as it was validated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from uuid import UUID

from payout_kernel.domain.earnings import RecipientType
from payout_kernel.domain.money import HUNDRED, MONEY_DECIMAL_PLACES, round_money
from payout_kernel.exceptions import SplitPolicyViolationError

PERCENTAGE_DECIMAL_PLACES = 6
_PERCENTAGE_QUANTUM = Decimal(1).scaleb(-PERCENTAGE_DECIMAL_PLACES)


def _too_precise(percentage: Decimal) -> bool:
    return percentage != percentage.quantize(_PERCENTAGE_QUANTUM)


@dataclass(frozen=True)
class SplitLine:
    """One recipient's percentage within a policy."""

    recipient_type: RecipientType
    percentage: Decimal
    recipient_id: UUID | None = None
    recipient_name: str | None = None
    department_id: UUID | None = None


@dataclass(frozen=True)
class SplitPolicy:
    """Percentage breakdown applied to a settled payment.

    ``key`` identifies where the policy came from (a registered policy id
    or a configured template name) for error reporting.
    """

    key: str
    lines: tuple[SplitLine, ...]
    referral_bonus_percentage: Decimal | None = None
    referral_recipient_id: UUID | None = None

    @property
    def total_percentage(self) -> Decimal:
        return sum((line.percentage for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class CalculatedSplit:
    """One share of a payment, ready to become a ledger entry."""

    line_number: int
    recipient_type: RecipientType
    recipient_id: UUID | None
    percentage: Decimal
    amount: Decimal
    recipient_name: str | None = None
    department_id: UUID | None = None


def validate_policy(policy: SplitPolicy) -> None:
    """Raise SplitPolicyViolationError unless the policy is applicable."""
    total = policy.total_percentage
    if not policy.lines:
        raise SplitPolicyViolationError(policy.key, total, "policy has no lines")

    seen: set[tuple[RecipientType, UUID | None]] = set()
    for line in policy.lines:
        if line.percentage <= 0:
            raise SplitPolicyViolationError(
                policy.key, total,
                f"{line.recipient_type.value} has non-positive percentage {line.percentage}",
            )
        if _too_precise(line.percentage):
            raise SplitPolicyViolationError(
                policy.key, total,
                f"{line.recipient_type.value} percentage {line.percentage} has more than "
                f"{PERCENTAGE_DECIMAL_PLACES} decimal places",
            )
        ident = (line.recipient_type, line.recipient_id)
        if ident in seen:
            raise SplitPolicyViolationError(
                policy.key, total,
                f"duplicate recipient {line.recipient_type.value}:{line.recipient_id}",
            )
        seen.add(ident)

    if total != HUNDRED:
        raise SplitPolicyViolationError(policy.key, total, "percentages must total 100")

    bonus = policy.referral_bonus_percentage
    if bonus is not None and _too_precise(bonus):
        raise SplitPolicyViolationError(
            policy.key, total,
            f"referral bonus {bonus} has more than {PERCENTAGE_DECIMAL_PLACES} decimal places",
        )


def effective_policy(policy: SplitPolicy) -> SplitPolicy:
    """Validate ``policy``, apply its referral bonus and validate the result.

    This is the policy the calculator splits against.  Registration runs it
    too, so a policy that cannot settle is refused when it is registered.
    """
    validate_policy(policy)
    effective = apply_referral_bonus(policy)
    validate_policy(effective)
    return effective


def apply_referral_bonus(policy: SplitPolicy) -> SplitPolicy:
    """Move the referral bonus out of the department share.

    Returns the policy unchanged when it carries no bonus.  The bonus line
    is appended after the existing lines so line numbers of the original
    recipients do not shift.
    """
    bonus = policy.referral_bonus_percentage
    if not bonus:
        return policy

    department_lines = [
        i for i, line in enumerate(policy.lines)
        if line.recipient_type == RecipientType.DEPARTMENT
    ]
    if not department_lines:
        raise SplitPolicyViolationError(
            policy.key, policy.total_percentage,
            "referral bonus requires a department line",
        )

    index = department_lines[0]
    department = policy.lines[index]
    if department.percentage <= bonus:
        raise SplitPolicyViolationError(
            policy.key, policy.total_percentage,
            f"referral bonus {bonus}% exceeds department share {department.percentage}%",
        )

    lines = list(policy.lines)
    lines[index] = replace(department, percentage=department.percentage - bonus)
    lines.append(
        SplitLine(
            recipient_type=RecipientType.REFERRAL_BONUS,
            percentage=bonus,
            recipient_id=policy.referral_recipient_id,
            recipient_name="Referral Bonus",
        )
    )
    return replace(policy, lines=tuple(lines), referral_bonus_percentage=None)


def calculate_splits(
    amount: Decimal,
    policy: SplitPolicy,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> tuple[CalculatedSplit, ...]:
    """Compute each recipient's share of ``amount``.

    Raises:
        SplitPolicyViolationError: If the policy (after any referral
            adjustment) is not applicable.
    """
    effective = effective_policy(policy)

    shares = [
        round_money(amount * line.percentage / HUNDRED, decimal_places)
        for line in effective.lines
    ]

    remainder = amount - sum(shares, Decimal("0"))
    if remainder:
        largest = max(range(len(shares)), key=lambda i: (effective.lines[i].percentage, -i))
        shares[largest] += remainder

    return tuple(
        CalculatedSplit(
            line_number=number,
            recipient_type=line.recipient_type,
            recipient_id=line.recipient_id,
            percentage=line.percentage,
            amount=share,
            recipient_name=line.recipient_name,
            department_id=line.department_id,
        )
        for number, (line, share) in enumerate(zip(effective.lines, shares), start=1)
    )
