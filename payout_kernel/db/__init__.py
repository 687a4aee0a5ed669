"""Database layer - engine, base classes, types, and the conditional write."""

from payout_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from payout_kernel.db.conditional import conditional_update
from payout_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    session_scope,
)
from payout_kernel.db.types import UTCDateTime

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "conditional_update",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "UTCDateTime",
]
