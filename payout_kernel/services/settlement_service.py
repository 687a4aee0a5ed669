"""
SettlementService -- pending -> received, with the earnings ledger.

Responsibility:
    Settles one payment: the conditional status write, split policy
    resolution, split calculation and ledger insert, as one SAVEPOINT.
    Used by the automatic sweep (window elapsed, no override) and by the
    manual "mark received" action (any pending payment).

Architecture position:
    Kernel > Services.  Called by payout_batch's SettlementSweep and by
    application code.  Never commits.

Invariants enforced:
    - The CAS ``WHERE status = 'pending' [AND override_set_at IS NULL AND
      created_at <= cutoff]`` is the only arbiter between concurrent
      settlers.  Losing the race yields ``settled=False``, not an error.
    - A received payment never exists without its ledger entries: the
      status write and the entries share one SAVEPOINT, and any failure
      after the CAS rolls both back.
    - Ledger entries sum exactly to the payment amount.

Failure modes:
    - SplitPolicyViolationError / SplitPolicyNotFoundError propagate after
      the SAVEPOINT is rolled back; the payment stays pending.
    - PaymentNotFoundError from mark_received() for an unknown id.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_kernel.db.conditional import conditional_update
from payout_kernel.domain.clock import Clock, SystemClock
from payout_kernel.domain.earnings import EarningsEntry, EarningsStatus
from payout_kernel.domain.money import MONEY_DECIMAL_PLACES
from payout_kernel.domain.payment import PaymentStatus, SourceKind
from payout_kernel.domain.splits import calculate_splits
from payout_kernel.exceptions import PaymentNotFoundError
from payout_kernel.logging_config import LogContext, get_logger
from payout_kernel.models.audit_event import AuditAction
from payout_kernel.models.earnings import EarningsEntryModel
from payout_kernel.models.payment import PaymentModel
from payout_kernel.services.auditor_service import AuditorService
from payout_kernel.services.payment_service import payment_exists
from payout_kernel.services.split_policy_service import SplitPolicyService

logger = get_logger("services.settlement")


@dataclass(frozen=True)
class SettlementOutcome:
    """Result of one settlement attempt."""

    payment_id: UUID
    settled: bool
    entries: tuple[EarningsEntry, ...] = ()

    @property
    def affected_rows(self) -> int:
        return 1 if self.settled else 0


class SettlementService:
    """Settle payments and write their earnings ledger."""

    def __init__(
        self,
        session: Session,
        split_policies: SplitPolicyService,
        clock: Clock | None = None,
        auditor: AuditorService | None = None,
        decimal_places: int = MONEY_DECIMAL_PLACES,
    ):
        self._session = session
        self._split_policies = split_policies
        self._clock = clock or SystemClock()
        self._auditor = auditor or AuditorService(session, self._clock)
        self._decimal_places = decimal_places

    def settle_if_eligible(
        self,
        payment_id: UUID,
        window: timedelta,
        actor_id: UUID,
        now: datetime | None = None,
    ) -> SettlementOutcome:
        """Automatic settlement: only if still pending, unflagged and past
        the window at the moment of the write."""
        now = now or self._clock.now()
        return self._settle(
            payment_id,
            actor_id,
            now,
            PaymentModel.override_set_at.is_(None),
            PaymentModel.created_at <= now - window,
            trigger="sweep",
        )

    def mark_received(self, payment_id: UUID, actor_id: UUID) -> SettlementOutcome:
        """Manual settlement of a pending payment.  Ignores any review hold:
        this is the reviewer releasing the payment.

        Raises:
            PaymentNotFoundError: If the payment does not exist.
        """
        outcome = self._settle(payment_id, actor_id, self._clock.now(), trigger="manual")
        if not outcome.settled and not payment_exists(self._session, payment_id):
            raise PaymentNotFoundError(str(payment_id))
        return outcome

    def _settle(
        self,
        payment_id: UUID,
        actor_id: UUID,
        now: datetime,
        *conditions,
        trigger: str,
    ) -> SettlementOutcome:
        with LogContext.bind(payment_id=payment_id):
            try:
                with self._session.begin_nested():
                    return self._write_settlement(payment_id, actor_id, now, conditions, trigger)
            except Exception:
                # The CAS bypasses the unit of work, so rows loaded inside
                # the rolled-back SAVEPOINT are stale.
                self._session.expire_all()
                raise

    def _write_settlement(
        self,
        payment_id: UUID,
        actor_id: UUID,
        now: datetime,
        conditions: tuple,
        trigger: str,
    ) -> SettlementOutcome:
        affected = conditional_update(
            self._session,
            PaymentModel,
            PaymentModel.id == payment_id,
            PaymentModel.status == PaymentStatus.PENDING.value,
            *conditions,
            values={
                "status": PaymentStatus.RECEIVED.value,
                "paid_at": now,
                "updated_at": now,
                "updated_by_id": actor_id,
            },
        )
        if affected == 0:
            logger.info("settlement_skipped", extra={"trigger": trigger})
            return SettlementOutcome(payment_id=payment_id, settled=False)

        payment = self._session.execute(
            select(PaymentModel).where(PaymentModel.id == payment_id)
        ).scalar_one()
        policy = self._split_policies.resolve(
            SourceKind(payment.source_kind), payment.source_id,
        )
        splits = calculate_splits(payment.amount, policy, self._decimal_places)

        models = [
            EarningsEntryModel(
                payment_id=payment_id,
                line_number=split.line_number,
                recipient_type=split.recipient_type.value,
                recipient_id=split.recipient_id,
                recipient_name=split.recipient_name,
                department_id=split.department_id,
                amount=split.amount,
                percentage=split.percentage,
                status=EarningsStatus.CALCULATED.value,
                created_at=now,
                created_by_id=actor_id,
            )
            for split in splits
        ]
        self._session.add_all(models)
        self._session.flush()

        self._auditor.record(
            "Payment", payment_id, AuditAction.PAYMENT_SETTLED, actor_id,
            {
                "trigger": trigger,
                "amount": str(payment.amount),
                "policy": policy.key,
                "entries": len(models),
            },
        )
        logger.info(
            "payment_settled",
            extra={
                "trigger": trigger,
                "amount": str(payment.amount),
                "policy": policy.key,
                "entry_count": len(models),
            },
        )
        return SettlementOutcome(
            payment_id=payment_id,
            settled=True,
            entries=tuple(model.to_dto() for model in models),
        )
