"""
Payout configuration schema.

Frozen dataclasses the YAML file is parsed into.  Pure data; validation
lives in ``payout_config.validator`` and translation into kernel objects in
``payout_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal


@dataclass(frozen=True)
class SettlementSettings:
    """Automatic settlement timing."""

    window_hours: int = 48

    @property
    def window(self) -> timedelta:
        return timedelta(hours=self.window_hours)


@dataclass(frozen=True)
class MoneySettings:
    decimal_places: int = 2


@dataclass(frozen=True)
class ApprovalSettings:
    """Approval thresholds keyed by action kind (phase_claim, ...)."""

    thresholds: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class SplitLineDef:
    recipient_type: str
    percentage: Decimal


@dataclass(frozen=True)
class SplitTemplateDef:
    """Default split for a source kind, optionally for one variant.

    A template without a variant, or marked ``default``, applies when the
    funding source has no registered policy.
    """

    name: str
    source_kind: str
    lines: tuple[SplitLineDef, ...]
    variant: str | None = None
    default: bool = False

    @property
    def total_percentage(self) -> Decimal:
        return sum((line.percentage for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class PayoutConfig:
    """The complete, validated runtime configuration."""

    config_id: str
    version: int
    settlement: SettlementSettings
    money: MoneySettings
    approval: ApprovalSettings
    split_templates: tuple[SplitTemplateDef, ...]
    checksum: str = ""
