"""
Repairs user histories that are missing entries for recorded submissions.

Submissions written before the results insert and the history append shared
a transaction could land in ``results`` without reaching the user's
``quizzesTaken``, leaving the leaderboard short.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List

from quizboard.documents import timestamp_text, to_document
from quizboard.retry import NO_RETRY, RetryPolicy
from quizboard.store import ArrayUnion, DocumentStore
from shared.firebase_constants import (
    QUIZZES_TAKEN_FIELD,
    RESULTS_COLLECTION,
    USERS_COLLECTION,
)
from shared.types import UserHistoryEntry

logger = logging.getLogger(__name__)


def missing_entries(
    results: List[tuple[str, dict]], history: List[dict]
) -> List[UserHistoryEntry]:
    """
    Returns history entries for the results that ``history`` does not cover.

    A result is covered by an entry with its submissionId, or else by an
    unclaimed legacy entry (no submissionId) with the same quizId and score.
    """
    known_ids = {entry.get("submissionId") for entry in history}
    legacy: Dict[tuple, int] = defaultdict(int)
    for entry in history:
        if not entry.get("submissionId"):
            legacy[(entry.get("quizId"), entry.get("score"))] += 1

    missing: List[UserHistoryEntry] = []
    for submission_id, result in sorted(
        results,
        key=lambda item: (timestamp_text(item[1].get("submittedAt")), item[0]),
    ):
        if submission_id in known_ids:
            continue
        key = (result.get("quizId"), result.get("score"))
        if legacy[key] > 0:
            legacy[key] -= 1
            continue
        missing.append(
            UserHistoryEntry(
                quiz_id=result.get("quizId"),
                score=int(result.get("score") or 0),
                completed_at=timestamp_text(result.get("submittedAt")),
                submission_id=submission_id,
            )
        )
    return missing


def reconcile_user_histories(
    store: DocumentStore,
    *,
    dry_run: bool = False,
    retry_policy: RetryPolicy = NO_RETRY,
) -> int:
    """Appends missing history entries; returns how many were (or would be) added."""
    results_by_user: Dict[str, List[tuple[str, dict]]] = defaultdict(list)
    for submission_id, result in retry_policy.call(
        store.query_all, RESULTS_COLLECTION
    ):
        user_id = result.get("userId")
        if not user_id:
            logger.warning("Skipping result %s without userId", submission_id)
            continue
        results_by_user[user_id].append((submission_id, result))

    appended = 0
    for user_id, results in sorted(results_by_user.items()):
        user = retry_policy.call(store.get, USERS_COLLECTION, user_id) or {}
        entries = missing_entries(results, user.get(QUIZZES_TAKEN_FIELD) or [])
        if not entries:
            continue
        logger.info("User %s is missing %d history entries", user_id, len(entries))
        appended += len(entries)
        if dry_run:
            continue
        retry_policy.call(
            store.set,
            USERS_COLLECTION,
            user_id,
            {QUIZZES_TAKEN_FIELD: ArrayUnion([to_document(e) for e in entries])},
            merge=True,
        )
    return appended
