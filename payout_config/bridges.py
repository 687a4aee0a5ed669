"""
Config -> Kernel bridges.

Functions that turn a PayoutConfig into the objects the kernel services are
constructed with.  They live here because the kernel never imports
payout_config.

Usage:
    from payout_config.bridges import approval_thresholds, build_split_catalog

    config = get_active_config()
    catalog = build_split_catalog(config)
    gate = ApprovalGate(approval_thresholds(config), directory)
"""

from __future__ import annotations

from decimal import Decimal

from payout_config.schema import PayoutConfig, SplitTemplateDef
from payout_kernel.domain.earnings import RecipientType
from payout_kernel.domain.payment import SourceKind
from payout_kernel.domain.splits import SplitLine, SplitPolicy
from payout_kernel.services.split_policy_service import SplitTemplateCatalog


def build_split_policy(template: SplitTemplateDef) -> SplitPolicy:
    return SplitPolicy(
        key=f"template:{template.name}",
        lines=tuple(
            SplitLine(
                recipient_type=RecipientType(line.recipient_type),
                percentage=line.percentage,
            )
            for line in template.lines
        ),
    )


def build_split_catalog(config: PayoutConfig) -> SplitTemplateCatalog:
    """Index templates by (source kind, variant).

    A template with no variant, or marked default, is also registered under
    the ``None`` variant so unregistered funding sources resolve to it.
    """
    templates: dict[tuple[SourceKind, str | None], SplitPolicy] = {}
    for template in config.split_templates:
        kind = SourceKind(template.source_kind)
        policy = build_split_policy(template)
        templates[(kind, template.variant)] = policy
        if template.default:
            templates[(kind, None)] = policy
    return SplitTemplateCatalog(templates=templates)


def approval_thresholds(config: PayoutConfig) -> dict[str, Decimal]:
    return dict(config.approval.thresholds)
