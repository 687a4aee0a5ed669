"""
Structured JSON logging for the payout kernel.

Every record is written as one JSON object per line.  Fields bound through
``LogContext`` (the current sweep, actor, payment or ledger entry) are
attached to every record emitted while they are bound, so a single sweep
can be followed across the batch, settlement and ledger layers by
filtering on ``sweep_id``.

Usage::

    logger = get_logger("services.settlement")

    with LogContext.bind(sweep_id=sweep_id, payment_id=payment.payment_id):
        logger.info("payment_settled", extra={"entry_count": 3})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"payout_log_{name}", default=None)
    for name in ("correlation_id", "sweep_id", "actor_id", "payment_id", "entry_id")
}


class LogContext:
    """Sweep- and request-scoped log fields.

    Backed by ContextVars, so values are isolated per thread and per task.
    Values are stored as strings; ``None`` never overwrites a bound value.
    Unknown field names are ignored.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        for name, value in fields.items():
            var = _CONTEXT_VARS.get(name)
            if var is not None and value is not None:
                var.set(str(value))

    @staticmethod
    def get_all() -> dict[str, str]:
        """All bound fields, in declaration order."""
        return {
            name: value
            for name, var in _CONTEXT_VARS.items()
            if (value := var.get()) is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @staticmethod
    def bind(**fields: Any) -> "_BoundContext":
        """Bind fields for the duration of a ``with`` block."""
        return _BoundContext(fields)


class _BoundContext:

    def __init__(self, fields: dict[str, Any]):
        self._fields = fields
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> type[LogContext]:
        for name, value in self._fields.items():
            var = _CONTEXT_VARS.get(name)
            if var is not None and value is not None:
                self._tokens.append((var, var.set(str(value))))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        # Reset in reverse so a field bound twice restores the outer value.
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()


# ---------------------------------------------------------------------------
# JSON formatting
# ---------------------------------------------------------------------------

_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """``exc_*`` fields for a raised exception.

    Kernel exceptions contribute their ``code`` and every public attribute
    (``payment_id``, ``policy_key``, ...) so failures can be queried without
    parsing messages.
    """
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message, then context,
    ``extra`` fields and exception details."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_ROOT = "payout_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``payout_kernel`` namespace."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``payout_kernel`` logger.

    Idempotent: only the first call in a process has any effect.  ``level``
    accepts a number or a level name (``"DEBUG"``).
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_ROOT)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    root.propagate = False

    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Detach handlers and allow ``configure_logging`` to run again.  Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_ROOT)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
