"""
Pytest fixtures for the payout ledger test suite.

Provides:
- A fresh database per test (SQLite file under tmp_path by default)
- Kernel services wired to a DeterministicClock
- Structured log capture

Environment Variables:
- DATABASE_URL: optional PostgreSQL URL.  When set, tests run against it
  and tests marked ``postgres`` (threaded races) are enabled.
"""

import json
import logging
import os
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from payout_config import get_active_config
from payout_config.bridges import approval_thresholds, build_split_catalog
from payout_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    is_postgres,
    reset_engine,
)
from payout_kernel.domain.clock import DeterministicClock
from payout_kernel.domain.payment import PaymentType, SourceKind
from payout_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payout_kernel.services.auditor_service import AuditorService
from payout_kernel.services.earnings_service import EarningsLedgerService
from payout_kernel.services.override_service import OverrideRegistry
from payout_kernel.services.payment_service import PaymentService
from payout_kernel.services.settlement_service import SettlementService
from payout_kernel.services.split_policy_service import SplitPolicyService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

SETTLEMENT_WINDOW = timedelta(hours=48)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payout_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, sweep):
            sweep.run()
            logs = captured_logs()
            assert any(r["message"] == "sweep_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payout_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )
    config.addinivalue_line(
        "markers", "slow_locks: mark test as potentially waiting for DB locks"
    )


def pytest_collection_modifyitems(config, items):
    if os.environ.get("DATABASE_URL", "").startswith("postgresql"):
        return
    skip_pg = pytest.mark.skip(reason="needs DATABASE_URL pointing at PostgreSQL")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url(tmp_path) -> str:
    return os.environ.get("DATABASE_URL") or f"sqlite:///{tmp_path / 'payout_test.db'}"


@pytest.fixture
def db_engine(tmp_path):
    """Initialize the engine and a clean schema for one test."""
    engine = init_engine_from_url(get_database_url(tmp_path), pool_size=5)
    if is_postgres():
        drop_tables()
    create_tables()
    yield engine
    if is_postgres():
        drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(db_engine):
    """Session factory for tests that need several independent sessions."""
    factory = get_session_factory()
    created: list[Session] = []

    def tracked_factory() -> Session:
        s = factory()
        created.append(s)
        return s

    yield tracked_factory

    for s in created:
        s.rollback()
        s.close()


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    """The test's main session.  Tests commit explicitly when they need to."""
    yield session_factory()


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# Configuration fixtures


@pytest.fixture(scope="session")
def payout_config():
    return get_active_config()


@pytest.fixture(scope="session")
def split_catalog(payout_config):
    return build_split_catalog(payout_config)


@pytest.fixture(scope="session")
def thresholds(payout_config) -> dict[str, Decimal]:
    return approval_thresholds(payout_config)


# Service fixtures


@pytest.fixture
def auditor_service(session, deterministic_clock):
    return AuditorService(session, deterministic_clock)


@pytest.fixture
def payment_service(session, deterministic_clock, auditor_service):
    return PaymentService(session, deterministic_clock, auditor_service)


@pytest.fixture
def override_registry(session, deterministic_clock, auditor_service):
    return OverrideRegistry(session, deterministic_clock, auditor_service)


@pytest.fixture
def split_policy_service(session, split_catalog, deterministic_clock, auditor_service):
    return SplitPolicyService(session, split_catalog, deterministic_clock, auditor_service)


@pytest.fixture
def settlement_service(session, split_policy_service, deterministic_clock, auditor_service):
    return SettlementService(session, split_policy_service, deterministic_clock, auditor_service)


@pytest.fixture
def earnings_service(session, deterministic_clock, auditor_service):
    return EarningsLedgerService(session, deterministic_clock, auditor_service)


# Data helpers


@pytest.fixture
def create_payment(payment_service, test_actor_id):
    """Record a payment at the clock's current time.

    Usage::

        payment = create_payment(Decimal("100000"))
        payment = create_payment("500", source_kind=SourceKind.CONTENT_ORDER)
    """

    def _create(
        amount="100000",
        source_kind: SourceKind = SourceKind.PROJECT_PHASE,
        source_id: UUID | None = None,
        payment_type: PaymentType = PaymentType.MILESTONE,
        **kwargs,
    ):
        return payment_service.record_payment(
            Decimal(amount),
            payment_type,
            source_kind,
            source_id or uuid4(),
            test_actor_id,
            **kwargs,
        )

    return _create
