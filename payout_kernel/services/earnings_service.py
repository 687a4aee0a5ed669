"""
EarningsLedgerService -- approve and pay earnings ledger entries.

Responsibility:
    Moves ledger entries calculated -> approved -> paid, one at a time or
    in bulk.

Architecture position:
    Kernel > Services.  Reads live in EarningsSelector.

Invariants enforced:
    - Each transition is a compare-and-swap on the current status; no state
      may be skipped and nothing moves backwards.
    - Bulk operations apply the single-entry rule to every id independently
      and return how many actually changed.  Ids in the wrong state, unknown
      ids and duplicates are skipped silently.

Failure modes:
    - EarningsEntryNotFoundError from the single-entry operations only,
      and only when the id does not exist.
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_kernel.db.conditional import conditional_update
from payout_kernel.domain.actors import SYSTEM_ACTOR_ID
from payout_kernel.domain.clock import Clock, SystemClock
from payout_kernel.domain.earnings import EARNINGS_TRANSITIONS, EarningsStatus
from payout_kernel.exceptions import EarningsEntryNotFoundError
from payout_kernel.logging_config import get_logger
from payout_kernel.models.audit_event import AuditAction
from payout_kernel.models.earnings import EarningsEntryModel
from payout_kernel.services.auditor_service import AuditorService

logger = get_logger("services.earnings")


class EarningsLedgerService:
    """Ledger state transitions.  Never commits."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._auditor = auditor or AuditorService(session, self._clock)

    # -------------------------------------------------------------------------
    # Single entry
    # -------------------------------------------------------------------------

    def approve(self, entry_id: UUID, actor_id: UUID = SYSTEM_ACTOR_ID) -> int:
        """calculated -> approved.  Returns affected rows (0 or 1)."""
        affected = self._advance(entry_id, EarningsStatus.CALCULATED, EarningsStatus.APPROVED, actor_id)
        if affected == 0:
            self._require_exists(entry_id)
        return affected

    def mark_paid(self, entry_id: UUID, actor_id: UUID = SYSTEM_ACTOR_ID) -> int:
        """approved -> paid.  Returns affected rows (0 or 1)."""
        affected = self._advance(entry_id, EarningsStatus.APPROVED, EarningsStatus.PAID, actor_id)
        if affected == 0:
            self._require_exists(entry_id)
        return affected

    # -------------------------------------------------------------------------
    # Bulk
    # -------------------------------------------------------------------------

    def bulk_approve(self, entry_ids: Iterable[UUID], actor_id: UUID = SYSTEM_ACTOR_ID) -> int:
        """Approve every calculated entry among ``entry_ids``."""
        return self._bulk(entry_ids, EarningsStatus.CALCULATED, EarningsStatus.APPROVED, actor_id)

    def bulk_mark_paid(self, entry_ids: Iterable[UUID], actor_id: UUID = SYSTEM_ACTOR_ID) -> int:
        """Mark every approved entry among ``entry_ids`` as paid."""
        return self._bulk(entry_ids, EarningsStatus.APPROVED, EarningsStatus.PAID, actor_id)

    def approve_payment_earnings(self, payment_id: UUID, actor_id: UUID = SYSTEM_ACTOR_ID) -> int:
        """Approve all calculated entries of one payment."""
        entry_ids = self._session.execute(
            select(EarningsEntryModel.id)
            .where(
                EarningsEntryModel.payment_id == payment_id,
                EarningsEntryModel.status == EarningsStatus.CALCULATED.value,
            )
            .order_by(EarningsEntryModel.line_number)
        ).scalars().all()
        return self.bulk_approve(entry_ids, actor_id)

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _bulk(
        self,
        entry_ids: Iterable[UUID],
        from_status: EarningsStatus,
        to_status: EarningsStatus,
        actor_id: UUID,
    ) -> int:
        unique_ids = list(dict.fromkeys(entry_ids))
        changed = sum(
            self._advance(entry_id, from_status, to_status, actor_id)
            for entry_id in unique_ids
        )
        logger.info(
            "earnings_bulk_transition",
            extra={
                "from_status": from_status.value,
                "to_status": to_status.value,
                "requested": len(unique_ids),
                "changed": changed,
            },
        )
        return changed

    def _advance(
        self,
        entry_id: UUID,
        from_status: EarningsStatus,
        to_status: EarningsStatus,
        actor_id: UUID,
    ) -> int:
        assert to_status in EARNINGS_TRANSITIONS[from_status]
        now = self._clock.now()
        stamp = "approved_at" if to_status == EarningsStatus.APPROVED else "paid_at"
        affected = conditional_update(
            self._session,
            EarningsEntryModel,
            EarningsEntryModel.id == entry_id,
            EarningsEntryModel.status == from_status.value,
            values={
                "status": to_status.value,
                stamp: now,
                "updated_at": now,
                "updated_by_id": actor_id,
            },
        )
        if affected:
            action = (
                AuditAction.EARNINGS_APPROVED
                if to_status == EarningsStatus.APPROVED
                else AuditAction.EARNINGS_PAID
            )
            self._auditor.record("EarningsEntry", entry_id, action, actor_id)
            logger.debug(
                "earnings_status_changed",
                extra={"entry_id": str(entry_id), "to_status": to_status.value},
            )
        return affected

    def _require_exists(self, entry_id: UUID) -> None:
        exists = self._session.execute(
            select(EarningsEntryModel.id).where(EarningsEntryModel.id == entry_id)
        ).first()
        if exists is None:
            raise EarningsEntryNotFoundError(str(entry_id))
