#!/usr/bin/env python3
"""
Recalculate supplier scores from the command line.

Usage:
    python scripts/recalculate_scores.py --tenant-id 1
    python scripts/recalculate_scores.py --tenant-id 1 --supplier-id 42
    python scripts/recalculate_scores.py --tenant-id 1 --workers 4
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from supplier_scoring.core.exceptions import SupplierNotFoundError
from supplier_scoring.db.session import SessionLocal
from supplier_scoring.services.supplier_scoring_service import ScoringConfig, SupplierScoringService


def _fmt(score):
    return "  n/a" if score is None else f"{score:5.1f}"


def print_snapshot(snapshot) -> None:
    print(
        f"{snapshot.supplier_id:<6} {_fmt(snapshot.composite_score)}   "
        f"P {_fmt(snapshot.punctuality.score)}  C {_fmt(snapshot.conformity.score)}  "
        f"$ {_fmt(snapshot.price_competitiveness.score)}  R {_fmt(snapshot.reliability.score)}"
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Recalculate supplier performance scores")
    parser.add_argument("--tenant-id", type=int, required=True, help="Tenant to recalculate")
    parser.add_argument("--supplier-id", type=int, help="Only recalculate this supplier")
    parser.add_argument("--workers", type=int, help="Parallel workers for a full recalculation")
    parser.add_argument("--quiet", action="store_true", help="Only print the summary")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    config = ScoringConfig(max_workers=args.workers)
    db = SessionLocal()
    try:
        service = SupplierScoringService(db, config, session_factory=SessionLocal)

        if args.supplier_id:
            try:
                snapshot = service.calculate_score(args.supplier_id, args.tenant_id)
            except SupplierNotFoundError as e:
                print(f"ERROR: {e}")
                return 1
            print_snapshot(snapshot)
            return 0

        result = service.recalculate_all(args.tenant_id)
        if not args.quiet:
            for snapshot in result.results:
                print_snapshot(snapshot)
        for failure in result.failed:
            print(f"FAILED {failure.supplier_id}: {failure.error}")
        print(f"\nSuppliers processed: {result.suppliers_processed}, failed: {len(result.failed)}")
        return 1 if result.failed else 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
