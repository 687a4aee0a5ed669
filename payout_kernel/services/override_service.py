"""
OverrideRegistry -- manual review holds on payments.

Responsibility:
    Sets and clears the structured override ``{reason, set_by, set_at}`` on a
    payment.  While set, the settlement sweep will not settle the payment no
    matter how long it has been pending.

Architecture position:
    Kernel > Services.  The sweep reads override_set_at in its conditional
    update; only this service writes it.

Invariants enforced:
    - Last write wins: re-flagging replaces reason, actor and timestamp.
    - Unflag is unconditional; unflagging an unflagged payment is a no-op.
    - A flag committed before the sweep's conditional write blocks that
      write, even if the sweep selected the payment before the flag landed.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_kernel.db.conditional import conditional_update
from payout_kernel.domain.clock import Clock, SystemClock
from payout_kernel.domain.payment import PaymentSnapshot
from payout_kernel.exceptions import InvalidOverrideError, PaymentNotFoundError
from payout_kernel.logging_config import get_logger
from payout_kernel.models.audit_event import AuditAction
from payout_kernel.models.payment import PaymentModel
from payout_kernel.services.auditor_service import AuditorService
from payout_kernel.services.payment_service import payment_exists

logger = get_logger("services.override")


class OverrideRegistry:
    """Flag and unflag payments for manual review.  Never commits."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._auditor = auditor or AuditorService(session, self._clock)

    def flag_payment(self, payment_id: UUID, reason: str, actor_id: UUID) -> PaymentSnapshot:
        """Attach (or replace) the review hold.

        Raises:
            InvalidOverrideError: If reason is blank.
            PaymentNotFoundError: If the payment does not exist.
        """
        if not reason or not reason.strip():
            raise InvalidOverrideError(str(payment_id), "reason is required")

        now = self._clock.now()
        affected = conditional_update(
            self._session,
            PaymentModel,
            PaymentModel.id == payment_id,
            values={
                "override_reason": reason.strip(),
                "override_set_by": actor_id,
                "override_set_at": now,
                "updated_at": now,
                "updated_by_id": actor_id,
            },
        )
        if affected == 0:
            raise PaymentNotFoundError(str(payment_id))

        self._auditor.record(
            "Payment", payment_id, AuditAction.PAYMENT_FLAGGED, actor_id,
            {"reason": reason.strip()},
        )
        logger.info(
            "payment_flagged",
            extra={"payment_id": str(payment_id), "actor_id": str(actor_id)},
        )
        return self._load(payment_id)

    def unflag_payment(self, payment_id: UUID, actor_id: UUID) -> bool:
        """Clear the review hold.  Returns True if a hold was cleared.

        Raises:
            PaymentNotFoundError: If the payment does not exist.
        """
        now = self._clock.now()
        affected = conditional_update(
            self._session,
            PaymentModel,
            PaymentModel.id == payment_id,
            PaymentModel.override_set_at.is_not(None),
            values={
                "override_reason": None,
                "override_set_by": None,
                "override_set_at": None,
                "updated_at": now,
                "updated_by_id": actor_id,
            },
        )
        if affected == 0:
            if not payment_exists(self._session, payment_id):
                raise PaymentNotFoundError(str(payment_id))
            return False

        self._auditor.record(
            "Payment", payment_id, AuditAction.PAYMENT_UNFLAGGED, actor_id,
        )
        logger.info(
            "payment_unflagged",
            extra={"payment_id": str(payment_id), "actor_id": str(actor_id)},
        )
        return True

    def _load(self, payment_id: UUID) -> PaymentSnapshot:
        model = self._session.execute(
            select(PaymentModel).where(PaymentModel.id == payment_id)
        ).scalar_one()
        return model.to_dto()
