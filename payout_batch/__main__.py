"""
Command line entry point for the settlement sweep.

Usage:
    python -m payout_batch sweep                 # settle eligible payments
    python -m payout_batch status                # dry run: what would settle
    python -m payout_batch sweep --config my.yaml --database-url postgresql://...

The database URL comes from ``--database-url`` or the ``DATABASE_URL``
environment variable.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict

from payout_config import get_active_config
from payout_kernel.db.engine import get_session, get_session_factory, init_engine_from_url
from payout_kernel.domain.clock import SystemClock
from payout_kernel.logging_config import configure_logging
from payout_kernel.selectors.payment_selector import PaymentSelector

from payout_batch.services.trigger import run_settlement_sweep


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m payout_batch",
        description="Settle pending payments whose settlement window has elapsed.",
    )
    parser.add_argument("command", choices=("sweep", "status"))
    parser.add_argument(
        "--database-url", type=str, default=os.environ.get("DATABASE_URL"),
        help="Database URL (default: $DATABASE_URL)",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Payout configuration YAML (default: packaged defaults.yaml)",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    return parser


def _status(window) -> dict:
    session = get_session()
    try:
        status = PaymentSelector(session).batch_status(SystemClock().now(), window)
    finally:
        session.close()
    return asdict(status)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if not args.database_url:
        print("ERROR: no database URL (use --database-url or set DATABASE_URL)", file=sys.stderr)
        return 2

    configure_logging(level=args.log_level)
    config = get_active_config(args.config)
    init_engine_from_url(args.database_url)

    if args.command == "status":
        print(json.dumps(_status(config.settlement.window), indent=2, default=str))
        return 0

    result = run_settlement_sweep(get_session_factory(), config)
    print(json.dumps(
        {
            "sweep_id": str(result.sweep_id),
            "processed": result.processed,
            "flagged": result.flagged,
            "skipped": result.skipped,
            "failed": result.failed,
            "total_pending": result.total_pending,
        },
        indent=2,
    ))
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
