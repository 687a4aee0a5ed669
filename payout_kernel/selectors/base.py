"""
Module: payout_kernel.selectors.base
Responsibility: Base class and shared helpers for read-only selectors.
Architecture position: Kernel > Selectors.  May import from db/, domain/ and
    models/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only: selectors never add, delete, flush or commit.
    - Selectors return frozen DTOs, never ORM instances.
    - The caller owns the session and its transaction.
"""

import calendar
from datetime import datetime, timezone

from sqlalchemy.orm import Session


def month_bounds(month: int, year: int) -> tuple[datetime, datetime]:
    """Half-open UTC interval [start, end) covering one calendar month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


def month_name(month: int) -> str:
    return calendar.month_name[month]


class BaseSelector:
    """Holds the caller's session for subclass queries."""

    def __init__(self, session: Session):
        self.session = session
