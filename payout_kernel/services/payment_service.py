"""
PaymentService -- recording payments and manual single-record transitions.

Responsibility:
    Creates payments and applies the manual status transitions
    (pending -> failed, pending -> overdue, invoiced -> pending).  Settlement
    (pending -> received) lives in SettlementService because it also writes
    the ledger.

Architecture position:
    Kernel > Services.  Writes through conditional_update(); never commits.

Invariants enforced:
    - Every transition is a compare-and-swap on the current status.  A
      record in any other state reports 0 affected rows; this is not an
      error.
    - PaymentNotFoundError only when the id does not exist at all.
    - Amounts are strictly positive and rounded to money precision.

Failure modes:
    - InvalidPaymentAmountError on zero or negative amounts.
    - PaymentNotFoundError on unknown ids.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_kernel.db.conditional import conditional_update
from payout_kernel.domain.clock import Clock, SystemClock
from payout_kernel.domain.money import round_money
from payout_kernel.domain.payment import (
    PaymentSnapshot,
    PaymentStatus,
    PaymentType,
    SourceKind,
    can_transition,
)
from payout_kernel.exceptions import InvalidPaymentAmountError, PaymentNotFoundError
from payout_kernel.logging_config import get_logger
from payout_kernel.models.audit_event import AuditAction
from payout_kernel.models.payment import PaymentModel
from payout_kernel.services.auditor_service import AuditorService

logger = get_logger("services.payment")


def payment_exists(session: Session, payment_id: UUID) -> bool:
    """Whether a payment row with ``payment_id`` exists."""
    return session.execute(
        select(PaymentModel.id).where(PaymentModel.id == payment_id)
    ).first() is not None


class PaymentService:
    """Record payments and apply manual transitions.

    Contract:
        - ``record_payment()`` inserts a ``pending`` (or ``invoiced``) payment.
        - ``mark_failed()`` / ``mark_overdue()`` / ``release_invoice()``
          return affected rows (0 or 1).
    Non-goals:
        - Does NOT commit; the caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._auditor = auditor or AuditorService(session, self._clock)

    def record_payment(
        self,
        amount: Decimal,
        payment_type: PaymentType,
        source_kind: SourceKind,
        source_id: UUID,
        actor_id: UUID,
        *,
        due_date: date | None = None,
        payment_method: str | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
        invoiced: bool = False,
    ) -> PaymentSnapshot:
        """Insert a new payment.  ``created_at`` anchors the settlement window.

        Raises:
            InvalidPaymentAmountError: If amount is not positive.
        """
        amount = Decimal(amount)
        if amount <= 0:
            raise InvalidPaymentAmountError(amount)

        status = PaymentStatus.INVOICED if invoiced else PaymentStatus.PENDING
        model = PaymentModel(
            amount=round_money(amount),
            status=status.value,
            payment_type=PaymentType(payment_type).value,
            source_kind=SourceKind(source_kind).value,
            source_id=source_id,
            due_date=due_date,
            payment_method=payment_method,
            reference_number=reference_number,
            notes=notes,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self._session.add(model)
        self._session.flush()

        self._auditor.record(
            "Payment", model.id, AuditAction.PAYMENT_RECORDED, actor_id,
            {
                "amount": str(model.amount),
                "status": status.value,
                "source_kind": model.source_kind,
                "source_id": str(source_id),
            },
        )
        logger.info(
            "payment_recorded",
            extra={
                "payment_id": str(model.id),
                "amount": str(model.amount),
                "status": status.value,
                "source_kind": model.source_kind,
            },
        )
        return model.to_dto()

    def mark_failed(self, payment_id: UUID, actor_id: UUID) -> int:
        """pending -> failed."""
        return self._transition(payment_id, PaymentStatus.PENDING, PaymentStatus.FAILED, actor_id)

    def mark_overdue(self, payment_id: UUID, actor_id: UUID) -> int:
        """pending -> overdue."""
        return self._transition(payment_id, PaymentStatus.PENDING, PaymentStatus.OVERDUE, actor_id)

    def release_invoice(self, payment_id: UUID, actor_id: UUID) -> int:
        """invoiced -> pending.  The settlement window still runs from created_at."""
        return self._transition(payment_id, PaymentStatus.INVOICED, PaymentStatus.PENDING, actor_id)

    def _transition(
        self,
        payment_id: UUID,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
        actor_id: UUID,
    ) -> int:
        assert can_transition(from_status, to_status), (
            f"illegal payment transition {from_status.value} -> {to_status.value}"
        )
        now = self._clock.now()
        affected = conditional_update(
            self._session,
            PaymentModel,
            PaymentModel.id == payment_id,
            PaymentModel.status == from_status.value,
            values={
                "status": to_status.value,
                "updated_at": now,
                "updated_by_id": actor_id,
            },
        )

        if affected == 0:
            if not payment_exists(self._session, payment_id):
                raise PaymentNotFoundError(str(payment_id))
            logger.info(
                "payment_transition_skipped",
                extra={
                    "payment_id": str(payment_id),
                    "from_status": from_status.value,
                    "to_status": to_status.value,
                },
            )
            return 0

        self._auditor.record(
            "Payment", payment_id, AuditAction.PAYMENT_STATUS_CHANGED, actor_id,
            {"from_status": from_status.value, "to_status": to_status.value},
        )
        logger.info(
            "payment_status_changed",
            extra={
                "payment_id": str(payment_id),
                "from_status": from_status.value,
                "to_status": to_status.value,
            },
        )
        return affected
