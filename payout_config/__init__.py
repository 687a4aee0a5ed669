"""
payout_config -- single public entrypoint for payout configuration.

Responsibility:
    Provides the only way to obtain configuration at runtime through
    ``get_active_config()``: settlement window, money precision, approval
    thresholds and default split templates.

Architecture position:
    Sits above ``payout_kernel`` and below ``payout_batch``.  The kernel
    never imports from ``payout_config``; ``payout_config.bridges``
    translates a ``PayoutConfig`` into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``KeyError`` -- a required key is missing.
    - ``ConfigurationError`` -- the parsed configuration failed validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PAYOUT_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying each sweep to the configuration that governed it.
"""

from __future__ import annotations

from pathlib import Path

from payout_config.loader import load_yaml_file, parse_config
from payout_config.schema import PayoutConfig
from payout_config.validator import validate_config
from payout_kernel.exceptions import ConfigurationError
from payout_kernel.logging_config import get_logger

__all__ = ["PayoutConfig", "get_active_config", "DEFAULT_CONFIG_PATH"]

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> PayoutConfig:
    """The only public configuration entrypoint.

    Guarantees:
        - The returned ``PayoutConfig`` has passed validation: positive
          settlement window, non-negative thresholds, every split template
          totalling 100% over known recipient types.
        - A ``PAYOUT_CONFIG_TRACE`` log entry is emitted on every call that
          returns.

    Args:
        config_path: YAML file to load.  Defaults to the packaged
            ``defaults.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    config = parse_config(load_yaml_file(path))

    errors = validate_config(config)
    if errors:
        _logger.error(
            "config_validation_failed",
            extra={"config_path": str(path), "error_count": len(errors)},
        )
        raise ConfigurationError(str(path), errors)

    _logger.info(
        "PAYOUT_CONFIG_TRACE",
        extra={
            "trace_type": "PAYOUT_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "settlement_window_hours": config.settlement.window_hours,
            "template_count": len(config.split_templates),
        },
    )
    return config
