"""
Module: payout_kernel.db.engine
Responsibility: the process-wide engine and session factory, plus the
    ``session_scope`` unit of work used by callers that own a transaction.
Architecture position: Kernel > DB.  create_tables/drop_tables import the
    models package so metadata is complete.

Invariants enforced:
    - PostgreSQL runs at READ COMMITTED.  The settlement CAS relies on that
      level: a concurrent sweep re-evaluates ``status = 'pending'`` against
      the committed row after waiting on its lock.
    - SAVEPOINTs work on SQLite too.  pysqlite's implicit transaction
      handling is disabled and BEGIN is emitted explicitly so
      ``session.begin_nested()`` maps to a real SAVEPOINT.
    - Services never commit.  ``session_scope()`` and the sweep trigger do.

Failure modes:
    - RuntimeError when a session is requested before
      ``init_engine_from_url()``.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from payout_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _install_sqlite_savepoint_support(engine: Engine) -> None:

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def _sqlite_engine(database_url: str, echo: bool, timeout: float) -> Engine:
    engine = create_engine(
        database_url,
        echo=echo,
        connect_args={"timeout": timeout, "check_same_thread": False},
    )
    _install_sqlite_savepoint_support(engine)
    return engine


def _postgres_engine(database_url: str, echo: bool, pool: dict[str, Any]) -> Engine:
    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        isolation_level="READ COMMITTED",
        **pool,
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    sqlite_timeout: float = 15.0,
) -> Engine:
    """
    Create the engine and session factory, replacing any previous ones.

    Args:
        database_url: ``postgresql://...`` in production, ``sqlite:///path``
            for local runs and tests.
        echo: Log every SQL statement.
        pool_size, max_overflow, pool_timeout, pool_recycle: connection
            pool settings, PostgreSQL only.
        sqlite_timeout: Seconds SQLite waits on a locked database file.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    if database_url.startswith("sqlite"):
        _engine = _sqlite_engine(database_url, echo, sqlite_timeout)
        pool: dict[str, Any] = {}
    else:
        pool = {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_timeout": pool_timeout,
            "pool_recycle": pool_recycle,
            "pool_pre_ping": True,
        }
        _engine = _postgres_engine(database_url, echo, pool)

    # Snapshots are read after commit by the trigger and the CLI.
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo, **pool},
    )
    return _engine


def _require_engine() -> Engine:
    if _engine is None or _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_engine() -> Engine:
    return _require_engine()


def get_session_factory() -> sessionmaker[Session]:
    """The factory the sweep trigger opens its session from.

    Each thread running a sweep needs its own session.
    """
    _require_engine()
    return _SessionFactory


def get_session() -> Session:
    return get_session_factory()()


def is_postgres() -> bool:
    return _engine is not None and _engine.dialect.name == "postgresql"


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One transaction around a block of service calls.

    Commits on normal exit.  On exception rolls back, logs
    ``transaction_rolled_back`` and re-raises.  Always closes.

    Usage:
        with session_scope() as session:
            OverrideRegistry(session).flag_payment(payment_id, reason, actor_id)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    from payout_kernel.db.base import Base
    import payout_kernel.models  # noqa: F401  (registers all tables)

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every payout table.  Tests only."""
    from payout_kernel.db.base import Base
    import payout_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory (test cleanup)."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
