"""
ApprovalGate -- application-layer approval tier checks.

Responsibility:
    Applies the configured threshold for an action kind (phase claim,
    assignment claim, content order) and checks the approver against a
    directly-queried directory of roles and departments.

Architecture position:
    Kernel > Services.  Thresholds are injected (payout_config supplies
    them); no threshold literal appears here.

Failure modes:
    - ValueError for an action kind with no configured threshold.
    - UnauthorizedApproverError when the approver cannot grant the tier,
      including when the directory has no profile for them.
"""

from decimal import Decimal
from typing import Mapping
from uuid import UUID

from payout_kernel.domain.approval_tier import (
    ApprovalTier,
    ApproverDirectory,
    can_approve,
    required_approver_tier,
)
from payout_kernel.exceptions import UnauthorizedApproverError
from payout_kernel.logging_config import get_logger

logger = get_logger("services.approval_gate")


class ApprovalGate:
    """Tier evaluation plus explicit approver authorization."""

    def __init__(
        self,
        thresholds: Mapping[str, Decimal],
        directory: ApproverDirectory,
    ):
        self._thresholds = dict(thresholds)
        self._directory = directory

    def threshold_for(self, action: str) -> Decimal:
        try:
            return self._thresholds[action]
        except KeyError:
            raise ValueError(f"No approval threshold configured for {action!r}") from None

    def required_tier(
        self,
        action: str,
        value: Decimal,
        department_signoff: bool = False,
    ) -> ApprovalTier:
        return required_approver_tier(value, self.threshold_for(action), department_signoff)

    def authorize(
        self,
        actor_id: UUID,
        action: str,
        value: Decimal,
        department_id: UUID | None = None,
        department_signoff: bool = False,
    ) -> ApprovalTier:
        """Return the tier the actor has just granted.

        Raises:
            UnauthorizedApproverError: If the actor may not grant it.
        """
        tier = self.required_tier(action, value, department_signoff)
        if tier == ApprovalTier.NONE:
            return tier

        profile = self._directory.get_profile(actor_id)
        if profile is None or not can_approve(profile, tier, department_id):
            role = profile.role.value if profile is not None else "unknown"
            logger.warning(
                "approval_denied",
                extra={
                    "actor_id": str(actor_id),
                    "action": action,
                    "required_tier": tier.value,
                    "role": role,
                },
            )
            raise UnauthorizedApproverError(str(actor_id), tier.value, role)

        logger.info(
            "approval_granted",
            extra={"actor_id": str(actor_id), "action": action, "tier": tier.value},
        )
        return tier
