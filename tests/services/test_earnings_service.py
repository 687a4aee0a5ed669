"""
Tests for EarningsLedgerService: calculated -> approved -> paid.

Invariants tested:
- Each transition applies once; repeating it affects zero rows.
- Skipping a step (calculated -> paid) affects zero rows.
- Bulk operations apply per entry and report only the entries they moved.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from payout_kernel.domain.earnings import EarningsStatus
from payout_kernel.exceptions import EarningsEntryNotFoundError
from payout_kernel.models.audit_event import AuditAction
from payout_kernel.selectors.earnings_selector import EarningsSelector

WINDOW = timedelta(hours=48)


@pytest.fixture
def settled_entries(create_payment, settlement_service, deterministic_clock, test_actor_id):
    """Ledger entries of one settled project-phase payment (default template)."""
    payment = create_payment("100000")
    deterministic_clock.advance(hours=48)
    outcome = settlement_service.settle_if_eligible(payment.payment_id, WINDOW, test_actor_id)
    assert outcome.settled
    return outcome.entries


class TestSingleTransitions:

    def test_approve_twice(self, settled_entries, earnings_service, session):
        entry = settled_entries[0]

        assert earnings_service.approve(entry.entry_id) == 1
        assert earnings_service.approve(entry.entry_id) == 0

        approved = EarningsSelector(session).get(entry.entry_id)
        assert approved.status == EarningsStatus.APPROVED
        assert approved.approved_at is not None

    def test_mark_paid_requires_approval(self, settled_entries, earnings_service, session):
        entry = settled_entries[0]

        assert earnings_service.mark_paid(entry.entry_id) == 0
        assert EarningsSelector(session).get(entry.entry_id).status == EarningsStatus.CALCULATED

    def test_full_lifecycle(self, settled_entries, earnings_service, deterministic_clock, session):
        entry = settled_entries[0]
        earnings_service.approve(entry.entry_id)
        paid_time = deterministic_clock.advance(hours=24)

        assert earnings_service.mark_paid(entry.entry_id) == 1
        assert earnings_service.mark_paid(entry.entry_id) == 0

        paid = EarningsSelector(session).get(entry.entry_id)
        assert paid.status == EarningsStatus.PAID
        assert paid.paid_at == paid_time

    def test_paid_entry_cannot_be_reapproved(self, settled_entries, earnings_service, session):
        entry = settled_entries[0]
        earnings_service.approve(entry.entry_id)
        earnings_service.mark_paid(entry.entry_id)

        assert earnings_service.approve(entry.entry_id) == 0
        assert EarningsSelector(session).get(entry.entry_id).status == EarningsStatus.PAID

    def test_unknown_entry(self, earnings_service):
        with pytest.raises(EarningsEntryNotFoundError):
            earnings_service.approve(uuid4())
        with pytest.raises(EarningsEntryNotFoundError):
            earnings_service.mark_paid(uuid4())

    def test_transitions_are_audited(
        self, settled_entries, earnings_service, auditor_service, deterministic_clock,
    ):
        entry = settled_entries[0]
        earnings_service.approve(entry.entry_id)
        deterministic_clock.tick()
        earnings_service.mark_paid(entry.entry_id)

        trace = auditor_service.trace("EarningsEntry", entry.entry_id)
        assert trace.actions == (AuditAction.EARNINGS_APPROVED, AuditAction.EARNINGS_PAID)


class TestBulkTransitions:

    def test_bulk_approve_counts_only_calculated(self, settled_entries, earnings_service):
        calculated, approved, paid = settled_entries[:3]
        earnings_service.approve(approved.entry_id)
        earnings_service.approve(paid.entry_id)
        earnings_service.mark_paid(paid.entry_id)

        changed = earnings_service.bulk_approve(
            [calculated.entry_id, approved.entry_id, paid.entry_id]
        )
        assert changed == 1

    def test_bulk_approve_ignores_duplicates(self, settled_entries, earnings_service):
        entry = settled_entries[0]
        assert earnings_service.bulk_approve([entry.entry_id, entry.entry_id]) == 1

    def test_bulk_mark_paid(self, settled_entries, earnings_service, session):
        ids = [e.entry_id for e in settled_entries]
        earnings_service.bulk_approve(ids[:2])

        assert earnings_service.bulk_mark_paid(ids) == 2
        statuses = [EarningsSelector(session).get(i).status for i in ids]
        assert statuses == [EarningsStatus.PAID, EarningsStatus.PAID, EarningsStatus.CALCULATED]

    def test_bulk_with_unknown_id_skips_it(self, settled_entries, earnings_service):
        assert earnings_service.bulk_approve([uuid4(), settled_entries[0].entry_id]) == 1

    def test_empty_bulk(self, earnings_service):
        assert earnings_service.bulk_approve([]) == 0

    def test_approve_payment_earnings(self, settled_entries, earnings_service, session):
        payment_id = settled_entries[0].payment_id
        earnings_service.approve(settled_entries[0].entry_id)

        assert earnings_service.approve_payment_earnings(payment_id) == len(settled_entries) - 1
        entries = EarningsSelector(session).for_payment(payment_id)
        assert {e.status for e in entries} == {EarningsStatus.APPROVED}

    def test_bulk_logs_summary(self, settled_entries, earnings_service, captured_logs):
        earnings_service.bulk_approve([e.entry_id for e in settled_entries])

        summary = [r for r in captured_logs() if r["message"] == "earnings_bulk_transition"]
        assert summary[-1]["changed"] == len(settled_entries)
        assert summary[-1]["to_status"] == "approved"
