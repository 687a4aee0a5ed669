"""
Tests for run_settlement_sweep: one sweep, one committed transaction.
"""

from dataclasses import replace
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from payout_batch.__main__ import main
from payout_batch.services.sweep import SettlementSweep
from payout_batch.services.trigger import build_settlement_sweep, run_settlement_sweep
from payout_config.schema import SettlementSettings
from payout_kernel.domain.payment import PaymentStatus, PaymentType, SourceKind
from payout_kernel.selectors.earnings_selector import EarningsSelector
from payout_kernel.selectors.payment_selector import PaymentSelector
from payout_kernel.services.payment_service import PaymentService


@pytest.fixture
def committed_payment(session_factory, deterministic_clock, test_actor_id):
    session = session_factory()
    payment = PaymentService(session, deterministic_clock).record_payment(
        Decimal("5000"), PaymentType.ADVANCE, SourceKind.PROJECT_PHASE, uuid4(), test_actor_id,
    )
    session.commit()
    session.close()
    return payment


class TestRunSettlementSweep:

    def test_commits_settlement(
        self, committed_payment, session_factory, payout_config, deterministic_clock,
    ):
        deterministic_clock.advance(hours=48)

        result = run_settlement_sweep(session_factory, payout_config, deterministic_clock)

        assert result.processed == 1
        reader = session_factory()
        assert PaymentSelector(reader).get(committed_payment.payment_id).status == PaymentStatus.RECEIVED
        assert len(EarningsSelector(reader).for_payment(committed_payment.payment_id)) == 3

    def test_nothing_due(self, committed_payment, session_factory, payout_config, deterministic_clock):
        result = run_settlement_sweep(session_factory, payout_config, deterministic_clock)
        assert result.processed == 0
        assert result.total_pending == 1

    def test_loads_default_config_when_none_given(
        self, committed_payment, session_factory, deterministic_clock, captured_logs,
    ):
        deterministic_clock.advance(hours=48)
        run_settlement_sweep(session_factory, clock=deterministic_clock)
        assert any(r["message"] == "PAYOUT_CONFIG_TRACE" for r in captured_logs())

    def test_sweep_level_failure_rolls_back_and_propagates(
        self, committed_payment, session_factory, payout_config, deterministic_clock, captured_logs,
    ):
        deterministic_clock.advance(hours=48)

        with patch.object(SettlementSweep, "find_candidates", side_effect=RuntimeError("db gone")):
            with pytest.raises(RuntimeError):
                run_settlement_sweep(session_factory, payout_config, deterministic_clock)

        assert any(r["message"] == "settlement_sweep_failed" for r in captured_logs())
        reader = session_factory()
        assert PaymentSelector(reader).get(committed_payment.payment_id).status == PaymentStatus.PENDING


class TestBuildSettlementSweep:

    def test_window_comes_from_config(self, session, payout_config, deterministic_clock, create_payment):
        short = replace(payout_config, settlement=SettlementSettings(window_hours=1))
        sweep = build_settlement_sweep(session, short, deterministic_clock)
        create_payment("100")
        deterministic_clock.advance(hours=1)

        assert sweep.run().processed == 1


class TestCommandLine:

    def test_requires_database_url(self, monkeypatch, capsys):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert main(["status"]) == 2
        assert "DATABASE_URL" in capsys.readouterr().err

    def test_status_is_a_dry_run(self, committed_payment, db_engine, capsys):
        assert main(["status", "--database-url", db_engine.url.render_as_string(hide_password=False)]) == 0
        out = capsys.readouterr().out
        assert '"total_pending": 1' in out
