#!/usr/bin/env python
"""CLI utility to back-fill idempotency records missing for processed events."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from app.core.database import session_scope
from app.services.reconciliation import IdempotencyReconciler


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rebuild missing idempotency records from processed events.")
    parser.add_argument("--dry-run", action="store_true", help="Report missing records without writing them.")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with session_scope() as session:
        result = IdempotencyReconciler(session).reconcile(dry_run=args.dry_run)

    logging.info(
        "Scanned %s processed events: %s missing idempotency records, %s repaired%s",
        result.scanned,
        result.missing,
        result.repaired,
        " (dry run)" if args.dry_run else "",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
