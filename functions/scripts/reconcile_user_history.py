"""
Append missing quiz history entries for recorded submissions.

Reads every document in ``results`` and makes sure the submitting user's
``quizzesTaken`` holds a matching entry, so the leaderboard reflects all
recorded attempts.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quizboard.dependencies import get_document_store, get_retry_policy
from quizboard.errors import StoreError
from quizboard.reconcile import reconcile_user_histories

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Reconcile user quiz histories with the results collection"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many entries would be appended without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    store = get_document_store()
    try:
        appended = reconcile_user_histories(
            store, dry_run=args.dry_run, retry_policy=get_retry_policy()
        )
    except StoreError as e:
        logger.error("Reconciliation failed: %s", e)
        return 1

    if args.dry_run:
        logger.info("Would append %d history entries", appended)
    else:
        logger.info("Appended %d history entries", appended)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
