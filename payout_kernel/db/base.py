"""
Module: payout_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the UUID primary key convention, the type annotation map for consistent
    column types, and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  The lowest-level import target within the
    kernel.  ALL model files import from here.  MUST NOT import from models/,
    services/, selectors/, or domain/.

Invariants enforced:
    - UUID primary keys generated with uuid4.
    - Decimal maps to Numeric(38, 9); money is never a float.
    - datetime maps to UTCDateTime; timestamps are always UTC-aware on read.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from payout_kernel.db.types import UTCDateTime


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all payout models.

    Guarantees:
        - id is a uuid4-generated UUID stored as String(36).
        - Decimal -> Numeric(38, 9), datetime -> UTCDateTime, int -> BigInteger.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with creation/update timestamps and actors.

    Timestamps come from the service's injected Clock, not the database
    server, so that sweeps replayed under a DeterministicClock produce the
    same rows.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    created_by_id: Mapped[PyUUID] = mapped_column(UUIDString(), nullable=False)

    updated_by_id: Mapped[PyUUID | None] = mapped_column(UUIDString(), nullable=True)


# Re-export UUID for convenience
UUID = PyUUID
