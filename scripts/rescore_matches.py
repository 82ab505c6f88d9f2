#!/usr/bin/env python3
"""
Rescore Matches

Recomputes compatibility scores and upserts the matches table. Safe to run
repeatedly: each (event, sponsor) pair keeps exactly one row.

Usage:
    python scripts/rescore_matches.py                  # all published events
    python scripts/rescore_matches.py --event-id 12    # one event
    python scripts/rescore_matches.py --sponsor-id 7   # one sponsor
    python scripts/rescore_matches.py --dry-run        # score, don't write
"""
import argparse
import logging
import sys
import time
sys.path.insert(0, '.')

from app.core.config import get_settings
from app.core.exceptions import RecordNotFoundError
from app.db.postgres import init_schema
from app.services.matching_service import MatchingService


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Recompute event/sponsor match scores")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--event-id", type=int, help="Rescore only this event")
    target.add_argument("--sponsor-id", type=int, help="Rescore only this sponsor")
    parser.add_argument("--dry-run", action="store_true", help="Compute scores without writing")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print("=" * 50)
    print("SPONSORSHIP MATCHING - RESCORE")
    print("=" * 50)
    if args.dry_run:
        print("    Dry run: nothing will be written")

    init_schema()
    service = MatchingService()
    started = time.time()

    try:
        if args.event_id is not None:
            summary = service.rescore_event(args.event_id, dry_run=args.dry_run)
        elif args.sponsor_id is not None:
            summary = service.rescore_sponsor(args.sponsor_id, dry_run=args.dry_run)
        else:
            summary = service.rescore_all(dry_run=args.dry_run)
    except RecordNotFoundError as e:
        print(f"    ❌ {e}")
        return 1

    print(f"\n    Scored:   {summary.scored}")
    print(f"    Featured: {summary.featured}")
    print(f"    Failed:   {summary.failed}")
    print(f"    Took {time.time() - started:.1f}s")
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
