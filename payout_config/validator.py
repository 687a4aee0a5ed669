"""Structural validation of a parsed PayoutConfig."""

from __future__ import annotations

from decimal import Decimal

from payout_config.schema import PayoutConfig
from payout_kernel.domain.earnings import RecipientType
from payout_kernel.domain.payment import SourceKind

_RECIPIENTS = {r.value for r in RecipientType}
_SOURCE_KINDS = {k.value for k in SourceKind}


def validate_config(config: PayoutConfig) -> list[str]:
    """Return every problem found; an empty list means valid."""
    errors: list[str] = []

    if config.settlement.window_hours <= 0:
        errors.append(
            f"settlement.window_hours must be positive, got {config.settlement.window_hours}"
        )
    if config.money.decimal_places < 0:
        errors.append(
            f"money.decimal_places must be non-negative, got {config.money.decimal_places}"
        )

    for name, threshold in config.approval.thresholds.items():
        if threshold < 0:
            errors.append(f"approval threshold {name} is negative: {threshold}")

    names: set[str] = set()
    defaults: dict[str, list[str]] = {}
    keys: set[tuple[str, str | None]] = set()
    for template in config.split_templates:
        if template.name in names:
            errors.append(f"split template {template.name} is defined twice")
        names.add(template.name)

        if template.source_kind not in _SOURCE_KINDS:
            errors.append(f"split template {template.name}: unknown source_kind {template.source_kind}")

        key = (template.source_kind, template.variant)
        if key in keys:
            errors.append(
                f"split template {template.name}: duplicate source_kind/variant "
                f"{template.source_kind}/{template.variant}"
            )
        keys.add(key)

        if template.default or template.variant is None:
            defaults.setdefault(template.source_kind, []).append(template.name)

        if not template.lines:
            errors.append(f"split template {template.name} has no lines")
        for line in template.lines:
            if line.recipient_type not in _RECIPIENTS:
                errors.append(
                    f"split template {template.name}: unknown recipient_type {line.recipient_type}"
                )
            if line.percentage <= 0:
                errors.append(
                    f"split template {template.name}: {line.recipient_type} percentage "
                    f"must be positive, got {line.percentage}"
                )
        if template.total_percentage != Decimal("100"):
            errors.append(
                f"split template {template.name} totals {template.total_percentage}%, not 100%"
            )

    for source_kind, template_names in defaults.items():
        if len(template_names) > 1:
            errors.append(
                f"source_kind {source_kind} has more than one default template: "
                + ", ".join(template_names)
            )

    return errors
