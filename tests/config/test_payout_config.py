"""
Tests for payout_config: loading, validation, trace logging and the
config -> kernel bridges.
"""

from decimal import Decimal

import pytest
import yaml

from payout_config import DEFAULT_CONFIG_PATH, get_active_config
from payout_config.bridges import approval_thresholds, build_split_catalog
from payout_config.loader import compute_checksum, load_yaml_file, parse_config
from payout_config.validator import validate_config
from payout_kernel.domain.earnings import RecipientType
from payout_kernel.domain.payment import SourceKind
from payout_kernel.exceptions import ConfigurationError


@pytest.fixture
def raw_defaults():
    return load_yaml_file(DEFAULT_CONFIG_PATH)


@pytest.fixture
def write_config(tmp_path):
    def _write(data, name="payout.yaml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


class TestDefaults:

    def test_defaults_load(self, payout_config):
        assert payout_config.config_id == "payout-default"
        assert payout_config.settlement.window_hours == 48
        assert payout_config.settlement.window.total_seconds() == 48 * 3600
        assert payout_config.money.decimal_places == 2
        assert validate_config(payout_config) == []

    def test_default_thresholds(self, thresholds):
        assert thresholds == {
            "phase_claim": Decimal("300000"),
            "assignment_claim": Decimal("300000"),
            "content_order": Decimal("50000"),
        }

    def test_every_template_totals_100(self, payout_config):
        for template in payout_config.split_templates:
            assert template.total_percentage == Decimal("100"), template.name

    def test_trace_is_logged(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "PAYOUT_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_id"] == "payout-default"
        assert traces[0]["checksum"] == config.checksum
        assert traces[0]["settlement_window_hours"] == 48
        assert traces[0]["template_count"] == 4


class TestChecksum:

    def test_deterministic_across_key_order(self, raw_defaults):
        reordered = dict(reversed(list(raw_defaults.items())))
        assert compute_checksum(reordered) == compute_checksum(raw_defaults)

    def test_changes_with_content(self, raw_defaults):
        changed = dict(raw_defaults, settlement={"window_hours": 24})
        assert compute_checksum(changed) != compute_checksum(raw_defaults)

    def test_loaded_config_carries_checksum(self, payout_config, raw_defaults):
        assert payout_config.checksum == compute_checksum(raw_defaults)


class TestValidation:

    def test_custom_file_loads(self, raw_defaults, write_config):
        path = write_config(dict(raw_defaults, settlement={"window_hours": 24}))
        assert get_active_config(path).settlement.window_hours == 24

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")

    def test_zero_window_rejected(self, raw_defaults, write_config):
        path = write_config(dict(raw_defaults, settlement={"window_hours": 0}))
        with pytest.raises(ConfigurationError) as exc_info:
            get_active_config(path)
        assert exc_info.value.source == str(path)
        assert any("window_hours" in e for e in exc_info.value.errors)

    def test_negative_threshold_rejected(self, raw_defaults, write_config):
        path = write_config(dict(raw_defaults, approval={"thresholds": {"phase_claim": "-1"}}))
        with pytest.raises(ConfigurationError):
            get_active_config(path)

    def test_template_must_total_100(self, raw_defaults):
        data = dict(raw_defaults)
        data["split_templates"] = [{
            "name": "short",
            "source_kind": "project_phase",
            "lines": [
                {"recipient_type": "department", "percentage": "40"},
                {"recipient_type": "council", "percentage": "50"},
            ],
        }]
        errors = validate_config(parse_config(data))
        assert len(errors) == 1
        assert "short" in errors[0]

    def test_unknown_recipient_and_source_kind(self, raw_defaults):
        data = dict(raw_defaults)
        data["split_templates"] = [{
            "name": "odd",
            "source_kind": "grant",
            "lines": [{"recipient_type": "shareholder", "percentage": "100"}],
        }]
        errors = validate_config(parse_config(data))
        assert any("grant" in e for e in errors)
        assert any("shareholder" in e for e in errors)

    def test_two_defaults_for_one_source_kind(self, raw_defaults):
        data = dict(raw_defaults)
        data["split_templates"] = [
            {
                "name": "a",
                "source_kind": "content_order",
                "lines": [{"recipient_type": "council", "percentage": "100"}],
            },
            {
                "name": "b",
                "source_kind": "content_order",
                "variant": "special",
                "default": True,
                "lines": [{"recipient_type": "council", "percentage": "100"}],
            },
        ]
        errors = validate_config(parse_config(data))
        assert any("content_order" in e for e in errors)

    def test_validation_failure_is_logged(self, raw_defaults, write_config, captured_logs):
        path = write_config(dict(raw_defaults, settlement={"window_hours": -5}))
        with pytest.raises(ConfigurationError):
            get_active_config(path)

        failures = [r for r in captured_logs() if r["message"] == "config_validation_failed"]
        assert failures[0]["config_path"] == str(path)


class TestBridges:

    def test_catalog_lookup_by_variant(self, split_catalog):
        track_a = split_catalog.lookup(SourceKind.TRAINING_PROGRAM, "track_a")
        assert track_a.key == "template:training_track_a"
        assert [line.recipient_type for line in track_a.lines] == [
            RecipientType.COHORT_MEMBER,
            RecipientType.COUNCIL,
            RecipientType.INFRASTRUCTURE,
        ]

    def test_training_default_is_track_b(self, split_catalog):
        default = split_catalog.lookup(SourceKind.TRAINING_PROGRAM, None)
        assert default.key == "template:training_track_b"

    def test_variantless_template_is_the_default(self, split_catalog):
        assert split_catalog.lookup(SourceKind.PROJECT_PHASE, None).key == "template:software"
        assert split_catalog.lookup(SourceKind.CONTENT_ORDER, None).key == "template:content"

    def test_unknown_variant_falls_back_to_default(self, split_catalog):
        fallback = split_catalog.lookup(SourceKind.TRAINING_PROGRAM, "track_z")
        assert fallback.key == "template:training_track_b"

    def test_thresholds_are_a_copy(self, payout_config):
        thresholds = approval_thresholds(payout_config)
        thresholds["phase_claim"] = Decimal("0")
        assert payout_config.approval.thresholds["phase_claim"] == Decimal("300000")

    def test_catalog_from_config(self, payout_config):
        catalog = build_split_catalog(payout_config)
        software = catalog.lookup(SourceKind.PROJECT_PHASE, None)
        assert sum(line.percentage for line in software.lines) == Decimal("100")
