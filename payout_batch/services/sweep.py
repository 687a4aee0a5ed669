"""
SettlementSweep -- SAVEPOINT-per-payment automatic settlement.

Contract:
    One sweep reads every pending payment, picks those past the settlement
    window without a review override, and settles each through
    ``SettlementService.settle_if_eligible``.  The read is advisory: the
    conditional write re-checks status, override and age, so a payment
    flagged or settled by someone else after the read is skipped.

Architecture: payout_batch/services.  Imports kernel services and
    selectors; never commits (the trigger owns the transaction).

Invariants enforced:
    - Each payment settles in its own SAVEPOINT; one failure never aborts
      the sweep or undoes another payment's settlement.
    - The sweep reads the override but never writes it.
    - All timestamps come from the injected Clock.
"""

from __future__ import annotations

import time
from datetime import timedelta
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from payout_kernel.domain.actors import SYSTEM_ACTOR_ID
from payout_kernel.domain.clock import Clock, SystemClock
from payout_kernel.domain.payment import is_settlement_eligible
from payout_kernel.logging_config import LogContext, get_logger
from payout_kernel.selectors.payment_selector import PaymentSelector
from payout_kernel.services.settlement_service import SettlementService

from payout_batch.domain.types import (
    SweepCandidates,
    SweepItemResult,
    SweepItemStatus,
    SweepResult,
)

logger = get_logger("batch.sweep")


class SettlementSweep:
    """Batch settlement of pending payments whose window has elapsed."""

    def __init__(
        self,
        session: Session,
        settlement_service: SettlementService,
        window: timedelta,
        clock: Clock | None = None,
        actor_id: UUID = SYSTEM_ACTOR_ID,
    ):
        if window <= timedelta(0):
            raise ValueError(f"Settlement window must be positive, got {window}")
        self._session = session
        self._settlement = settlement_service
        self._window = window
        self._clock = clock or SystemClock()
        self._actor_id = actor_id

    def run(self) -> SweepResult:
        """Read candidates and settle them."""
        return self.process_candidates(self.find_candidates())

    def find_candidates(self) -> SweepCandidates:
        """Read phase.  Side-effect free."""
        now = self._clock.now()
        pending = PaymentSelector(self._session).list_pending()
        eligible = tuple(
            p for p in pending
            if is_settlement_eligible(p.status, p.created_at, now, self._window, p.override)
        )
        return SweepCandidates(
            now=now,
            eligible=eligible,
            flagged_count=sum(1 for p in pending if p.is_flagged),
            total_pending=len(pending),
        )

    def process_candidates(
        self,
        candidates: SweepCandidates,
        sweep_id: UUID | None = None,
    ) -> SweepResult:
        """Write phase: settle each candidate in its own SAVEPOINT."""
        sweep_id = sweep_id or uuid4()
        started_at = self._clock.now()
        start_time = time.monotonic()

        with LogContext.bind(sweep_id=sweep_id, actor_id=self._actor_id):
            logger.info(
                "sweep_started",
                extra={
                    "total_pending": candidates.total_pending,
                    "eligible_count": len(candidates.eligible),
                    "flagged_count": candidates.flagged_count,
                    "window_hours": self._window.total_seconds() / 3600,
                },
            )

            items = [
                self._process_item(index, payment.payment_id, candidates)
                for index, payment in enumerate(candidates.eligible)
            ]

            def count(status: SweepItemStatus) -> int:
                return sum(1 for i in items if i.status == status)

            result = SweepResult(
                sweep_id=sweep_id,
                processed=count(SweepItemStatus.SETTLED),
                flagged=candidates.flagged_count,
                skipped=count(SweepItemStatus.SKIPPED),
                failed=count(SweepItemStatus.FAILED),
                total_pending=candidates.total_pending,
                items=tuple(items),
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
            logger.info(
                "sweep_completed",
                extra={
                    "processed": result.processed,
                    "flagged": result.flagged,
                    "skipped": result.skipped,
                    "failed": result.failed,
                    "duration_ms": result.duration_ms,
                },
            )
        return result

    def _process_item(
        self,
        index: int,
        payment_id: UUID,
        candidates: SweepCandidates,
    ) -> SweepItemResult:
        item_start = time.monotonic()
        try:
            outcome = self._settlement.settle_if_eligible(
                payment_id, self._window, self._actor_id, now=candidates.now,
            )
        except Exception as exc:
            # The settlement SAVEPOINT is already rolled back; the payment
            # stays pending for the next sweep.
            logger.exception(
                "sweep_item_failed",
                extra={"payment_id": str(payment_id), "item_index": index},
            )
            return SweepItemResult(
                item_index=index,
                payment_id=payment_id,
                status=SweepItemStatus.FAILED,
                error_code=getattr(exc, "code", "UNHANDLED_EXCEPTION"),
                error_message=str(exc),
                duration_ms=int((time.monotonic() - item_start) * 1000),
            )

        return SweepItemResult(
            item_index=index,
            payment_id=payment_id,
            status=SweepItemStatus.SETTLED if outcome.settled else SweepItemStatus.SKIPPED,
            entry_count=len(outcome.entries),
            duration_ms=int((time.monotonic() - item_start) * 1000),
        )
