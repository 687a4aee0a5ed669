"""
Sweep trigger -- one sweep in one transaction.

``run_settlement_sweep`` is what an external scheduler (cron, the CLI)
calls.  It opens a session from the factory, runs a single sweep, commits
and closes.  The core never schedules itself.
"""

from __future__ import annotations

from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from payout_config import PayoutConfig, get_active_config
from payout_config.bridges import build_split_catalog
from payout_kernel.domain.actors import SYSTEM_ACTOR_ID
from payout_kernel.domain.clock import Clock, SystemClock
from payout_kernel.logging_config import get_logger
from payout_kernel.services.auditor_service import AuditorService
from payout_kernel.services.settlement_service import SettlementService
from payout_kernel.services.split_policy_service import SplitPolicyService

from payout_batch.domain.types import SweepResult
from payout_batch.services.sweep import SettlementSweep

logger = get_logger("batch.trigger")


def build_settlement_sweep(
    session: Session,
    config: PayoutConfig,
    clock: Clock | None = None,
    actor_id: UUID = SYSTEM_ACTOR_ID,
) -> SettlementSweep:
    """Wire a SettlementSweep and its services from configuration."""
    clock = clock or SystemClock()
    auditor = AuditorService(session, clock)
    split_policies = SplitPolicyService(session, build_split_catalog(config), clock, auditor)
    settlement = SettlementService(
        session,
        split_policies,
        clock,
        auditor,
        decimal_places=config.money.decimal_places,
    )
    return SettlementSweep(
        session,
        settlement,
        config.settlement.window,
        clock=clock,
        actor_id=actor_id,
    )


def run_settlement_sweep(
    session_factory: Callable[[], Session],
    config: PayoutConfig | None = None,
    clock: Clock | None = None,
    actor_id: UUID = SYSTEM_ACTOR_ID,
) -> SweepResult:
    """Run one sweep and commit it.

    Per-payment failures are reported in the result.  Anything that breaks
    the sweep as a whole rolls the transaction back and propagates.
    """
    config = config or get_active_config()
    session = session_factory()
    try:
        result = build_settlement_sweep(session, config, clock, actor_id).run()
        session.commit()
        return result
    except Exception:
        session.rollback()
        logger.exception("settlement_sweep_failed")
        raise
    finally:
        session.close()
