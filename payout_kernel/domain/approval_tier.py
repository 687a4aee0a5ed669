"""
Approval tier gate (``payout_kernel.domain.approval_tier``).

Responsibility
--------------
Decides what level of sign-off a monetary action needs, and whether a
given approver may grant it.  Shared by phase claims, assignment claims and
any payment-adjacent approval.

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  Thresholds come from
``payout_config`` (``approval.thresholds.phase_claim`` etc.); no call site
holds a literal.

Invariants enforced
-------------------
* ``value <= threshold`` -> ``none``; ``value > threshold`` -> ``top``.
  The boundary value itself needs no escalation.
* Authorization is decided here from an approver profile the caller looked
  up directly (``ApproverDirectory``), never from token claims.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol
from uuid import UUID


class ApprovalTier(str, Enum):
    """Level of sign-off required."""

    NONE = "none"
    DEPARTMENT = "department"
    TOP = "top"


class ApproverRole(str, Enum):
    """Organisational roles known to the approval gate."""

    MANAGING_DIRECTOR = "managing_director"
    DEPARTMENT_HEAD = "department_head"
    COUNCIL = "council"
    FINANCE = "finance"
    CLIENT = "client"
    BUILDER = "builder"
    COHORT_MEMBER = "cohort_member"
    PRODUCTION_LEARNER = "production_learner"


@dataclass(frozen=True)
class ApproverProfile:
    """An approver's role and department, from the authoritative directory."""

    actor_id: UUID
    role: ApproverRole
    department_id: UUID | None = None


class ApproverDirectory(Protocol):
    """Directly-queried source of truth for roles and departments."""

    def get_profile(self, actor_id: UUID) -> ApproverProfile | None: ...


def evaluate_approval_tier(value: Decimal | int, threshold: Decimal | int) -> ApprovalTier:
    """Tier required for an action of ``value`` under ``threshold``.

    Raises:
        ValueError: If value or threshold is negative.
    """
    if value < 0:
        raise ValueError(f"value must be non-negative, got {value}")
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")
    if value <= threshold:
        return ApprovalTier.NONE
    return ApprovalTier.TOP


def required_approver_tier(
    value: Decimal | int,
    threshold: Decimal | int,
    department_signoff: bool = False,
) -> ApprovalTier:
    """Like ``evaluate_approval_tier`` but lets the caller require a
    department head below the threshold."""
    tier = evaluate_approval_tier(value, threshold)
    if tier == ApprovalTier.NONE and department_signoff:
        return ApprovalTier.DEPARTMENT
    return tier


def can_approve(
    approver: ApproverProfile,
    tier: ApprovalTier,
    department_id: UUID | None = None,
) -> bool:
    """Whether ``approver`` may grant ``tier`` for work owned by ``department_id``."""
    if tier == ApprovalTier.NONE:
        return True
    if approver.role == ApproverRole.MANAGING_DIRECTOR:
        return True
    if tier == ApprovalTier.DEPARTMENT:
        return (
            approver.role == ApproverRole.DEPARTMENT_HEAD
            and approver.department_id is not None
            and approver.department_id == department_id
        )
    return False
