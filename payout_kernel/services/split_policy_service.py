"""
SplitPolicyService -- registering and resolving split policies.

Responsibility:
    Stores the split policy a sale workflow agrees for a funding source, and
    resolves the policy to apply when a payment against that source settles.

Architecture position:
    Kernel > Services.  Default templates are injected as a
    ``SplitTemplateCatalog``; payout_config builds the catalog from YAML.
    The kernel never reads configuration files itself.

Resolution order:
    1. A registered policy with explicit lines.
    2. A registered policy without lines: the template for its variant,
       carrying the registered referral bonus.
    3. No registered policy: the default template for the source kind.

Failure modes:
    - SplitPolicyViolationError at registration if the policy that would be
      resolved (explicit lines, or the template plus any referral bonus)
      could not be split.
    - SplitPolicyNotFoundError at resolution if nothing applies.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_kernel.domain.clock import Clock, SystemClock
from payout_kernel.domain.payment import SourceKind
from payout_kernel.domain.splits import SplitLine, SplitPolicy, effective_policy
from payout_kernel.exceptions import SplitPolicyNotFoundError
from payout_kernel.logging_config import get_logger
from payout_kernel.models.audit_event import AuditAction
from payout_kernel.models.split_policy import SplitPolicyLineModel, SplitPolicyModel
from payout_kernel.services.auditor_service import AuditorService

logger = get_logger("services.split_policy")


@dataclass(frozen=True)
class SplitTemplateCatalog:
    """Default split templates, keyed by (source kind, variant).

    A ``None`` variant is the fallback for the source kind.
    """

    templates: dict[tuple[SourceKind, str | None], SplitPolicy] = field(default_factory=dict)

    def lookup(self, source_kind: SourceKind, variant: str | None) -> SplitPolicy | None:
        if variant is not None and (source_kind, variant) in self.templates:
            return self.templates[(source_kind, variant)]
        return self.templates.get((source_kind, None))


class SplitPolicyService:
    """Register and resolve split policies.  Never commits."""

    def __init__(
        self,
        session: Session,
        catalog: SplitTemplateCatalog | None = None,
        clock: Clock | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._catalog = catalog or SplitTemplateCatalog()
        self._clock = clock or SystemClock()
        self._auditor = auditor or AuditorService(session, self._clock)

    def register_policy(
        self,
        source_kind: SourceKind,
        source_id: UUID,
        actor_id: UUID,
        lines: Sequence[SplitLine] | None = None,
        *,
        variant: str | None = None,
        referral_bonus_percentage: Decimal | None = None,
        referral_recipient_id: UUID | None = None,
    ) -> SplitPolicy:
        """Store the policy for a funding source, replacing any earlier one.

        Raises:
            SplitPolicyViolationError: If the resulting policy, referral bonus
                included, could not be applied at settlement.
            SplitPolicyNotFoundError: If no lines are given and no template
                covers the source kind/variant.
        """
        source_kind = SourceKind(source_kind)
        key = f"{source_kind.value}:{source_id}"
        candidate = SplitPolicy(
            key=key,
            lines=tuple(lines or ()),
            referral_bonus_percentage=referral_bonus_percentage,
            referral_recipient_id=referral_recipient_id,
        )
        if lines:
            effective_policy(candidate)
        else:
            template = self._catalog.lookup(source_kind, variant)
            if template is None:
                raise SplitPolicyNotFoundError(source_kind.value, str(source_id), variant)
            effective_policy(self._with_referral(template, candidate))

        now = self._clock.now()
        model = self._session.execute(
            select(SplitPolicyModel).where(
                SplitPolicyModel.source_kind == source_kind.value,
                SplitPolicyModel.source_id == source_id,
            )
        ).scalar_one_or_none()

        if model is None:
            model = SplitPolicyModel(
                source_kind=source_kind.value,
                source_id=source_id,
                created_at=now,
                created_by_id=actor_id,
            )
            self._session.add(model)
        else:
            model.updated_at = now
            model.updated_by_id = actor_id
            model.lines.clear()
            self._session.flush()

        model.variant = variant
        model.referral_bonus_percentage = referral_bonus_percentage
        model.referral_recipient_id = referral_recipient_id
        for number, line in enumerate(candidate.lines, start=1):
            model.lines.append(
                SplitPolicyLineModel(
                    line_number=number,
                    recipient_type=line.recipient_type.value,
                    recipient_id=line.recipient_id,
                    recipient_name=line.recipient_name,
                    department_id=line.department_id,
                    percentage=line.percentage,
                    created_at=now,
                    created_by_id=actor_id,
                )
            )
        self._session.flush()

        self._auditor.record(
            "SplitPolicy", model.id, AuditAction.SPLIT_POLICY_REGISTERED, actor_id,
            {
                "source_kind": source_kind.value,
                "source_id": str(source_id),
                "variant": variant,
                "lines": [
                    {"recipient_type": line.recipient_type.value, "percentage": str(line.percentage)}
                    for line in candidate.lines
                ],
            },
        )
        logger.info(
            "split_policy_registered",
            extra={"source_kind": source_kind.value, "source_id": str(source_id), "variant": variant},
        )
        return self.resolve(source_kind, source_id)

    def resolve(self, source_kind: SourceKind, source_id: UUID) -> SplitPolicy:
        """The policy to apply to a payment against this funding source.

        The returned policy is not validated here; the calculator validates
        it at the moment of use.

        Raises:
            SplitPolicyNotFoundError: If neither a registered policy nor a
                template applies.
        """
        source_kind = SourceKind(source_kind)
        model = self._session.execute(
            select(SplitPolicyModel).where(
                SplitPolicyModel.source_kind == source_kind.value,
                SplitPolicyModel.source_id == source_id,
            )
        ).scalar_one_or_none()

        if model is not None and model.lines:
            return model.to_dto()

        variant = model.variant if model is not None else None
        template = self._catalog.lookup(source_kind, variant)
        if template is None:
            raise SplitPolicyNotFoundError(source_kind.value, str(source_id), variant)

        if model is None:
            return template
        return self._with_referral(template, model.to_dto())

    @staticmethod
    def _with_referral(template: SplitPolicy, registered: SplitPolicy) -> SplitPolicy:
        """The template's lines under the registered policy's key and referral."""
        return replace(
            template,
            key=registered.key,
            referral_bonus_percentage=registered.referral_bonus_percentage,
            referral_recipient_id=registered.referral_recipient_id,
        )
