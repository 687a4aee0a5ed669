"""
Configuration loader (``payout_config.loader``).

Responsibility
--------------
Reads the YAML file and parses it into ``payout_config.schema``
dataclasses.  The runtime entry point is
``payout_config.get_active_config()``; nothing else should call this.

Failure modes
-------------
* Missing file -> ``FileNotFoundError`` propagates.
* Malformed YAML -> ``yaml.YAMLError`` propagates.
* Missing required keys -> ``KeyError`` propagates.
* Non-numeric amounts -> ``decimal.InvalidOperation`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from payout_config.schema import (
    ApprovalSettings,
    MoneySettings,
    PayoutConfig,
    SettlementSettings,
    SplitLineDef,
    SplitTemplateDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_split_template(data: dict[str, Any]) -> SplitTemplateDef:
    return SplitTemplateDef(
        name=data["name"],
        source_kind=data["source_kind"],
        variant=data.get("variant"),
        default=bool(data.get("default", False)),
        lines=tuple(
            SplitLineDef(
                recipient_type=line["recipient_type"],
                percentage=Decimal(str(line["percentage"])),
            )
            for line in data.get("lines", [])
        ),
    )


def parse_config(data: dict[str, Any]) -> PayoutConfig:
    """Parse the root mapping of a payout configuration file."""
    settlement = data.get("settlement", {})
    money = data.get("money", {})
    approval = data.get("approval", {})

    return PayoutConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        settlement=SettlementSettings(
            window_hours=int(settlement.get("window_hours", 48)),
        ),
        money=MoneySettings(decimal_places=int(money.get("decimal_places", 2))),
        approval=ApprovalSettings(
            thresholds={
                name: Decimal(str(value))
                for name, value in approval.get("thresholds", {}).items()
            },
        ),
        split_templates=tuple(
            parse_split_template(t) for t in data.get("split_templates", [])
        ),
        checksum=compute_checksum(data),
    )
