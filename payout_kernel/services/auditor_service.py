"""
AuditorService -- append-only audit trail.

Responsibility:
    Records an AuditEvent for every payment, override, ledger and policy
    state change, and returns per-entity traces for review.

Architecture position:
    Kernel > Services.  Called by PaymentService, OverrideRegistry,
    SettlementService, EarningsLedgerService and SplitPolicyService.

Invariants enforced:
    - Append-only: this service only INSERTs AuditEvent rows.
    - Audit rows are written in the caller's transaction (and SAVEPOINT),
      so a rolled-back settlement leaves no audit record of it.
"""

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_kernel.domain.clock import Clock, SystemClock
from payout_kernel.logging_config import get_logger
from payout_kernel.models.audit_event import AuditAction, AuditEvent

logger = get_logger("services.auditor")


def hash_payload(payload: dict[str, Any]) -> str:
    """SHA-256 of the canonical (sorted-key) JSON form of ``payload``."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class AuditTraceEntry:
    """A single entry in an audit trace."""

    action: AuditAction
    occurred_at: datetime
    actor_id: UUID
    payload: dict[str, Any]


@dataclass(frozen=True)
class AuditTrace:
    """All audit events for one entity, oldest first."""

    entity_type: str
    entity_id: UUID
    entries: tuple[AuditTraceEntry, ...]

    @property
    def actions(self) -> tuple[AuditAction, ...]:
        return tuple(entry.action for entry in self.entries)


class AuditorService:
    """Writes and reads the audit trail.  Never commits."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def record(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        actor_id: UUID,
        payload: dict[str, Any] | None = None,
    ) -> AuditEvent:
        """Append one audit event and flush it."""
        payload_data = json.loads(json.dumps(payload or {}, default=str))
        event = AuditEvent(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action.value,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload=payload_data,
            payload_hash=hash_payload(payload_data),
        )
        self._session.add(event)
        self._session.flush()

        logger.debug(
            "audit_event_created",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "action": action.value,
            },
        )
        return event

    def trace(self, entity_type: str, entity_id: UUID) -> AuditTrace:
        """All events for one entity in chronological order."""
        events = self._session.execute(
            select(AuditEvent)
            .where(
                AuditEvent.entity_type == entity_type,
                AuditEvent.entity_id == entity_id,
            )
            .order_by(AuditEvent.occurred_at)
        ).scalars().all()

        return AuditTrace(
            entity_type=entity_type,
            entity_id=entity_id,
            entries=tuple(
                AuditTraceEntry(
                    action=AuditAction(event.action),
                    occurred_at=event.occurred_at,
                    actor_id=event.actor_id,
                    payload=event.payload or {},
                )
                for event in events
            ),
        )

    def verify_payload(self, event: AuditEvent) -> bool:
        """Whether the stored payload still matches its recorded hash."""
        return hash_payload(event.payload or {}) == event.payload_hash
