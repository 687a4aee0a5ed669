"""
Module: payout_kernel.db.types
Responsibility: The UTC datetime column type shared by all models.
Architecture position: Kernel > DB.  Imported by db/base.py and models/.
    MUST NOT import from models/, services/ or selectors/.

Invariants enforced:
    - No floats for money.  Amounts are Decimal end to end and persisted as
      Numeric(38, 9); settlement amounts are quantized by
      payout_kernel.domain.money.round_money() before they are written.
    - Timestamps are always timezone-aware UTC when read back, regardless
      of whether the backend stores an offset (SQLite does not).
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column that always round-trips as UTC.

    Contract:
        - Binding a naive datetime is rejected; aware values are converted
          to UTC.
        - On SQLite (no offset storage) the value is stored as naive UTC and
          re-tagged with UTC on load.  PostgreSQL stores timestamptz natively.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
