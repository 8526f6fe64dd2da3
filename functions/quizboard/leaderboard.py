"""
Leaderboard aggregation over per-user quiz history.
"""

from __future__ import annotations

from typing import List, Optional

from quizboard.retry import NO_RETRY, RetryPolicy
from quizboard.store import DocumentStore
from shared.firebase_constants import QUIZZES_TAKEN_FIELD, USERS_COLLECTION
from shared.types import LeaderboardRow


def rank_users(users: list[tuple[str, dict]]) -> List[LeaderboardRow]:
    """
    Builds ranked rows from (user_id, user document) pairs.

    Users without history are skipped. Rows are ordered by total score,
    highest first, then by user id so that ties are deterministic.
    """
    totals: list[tuple[str, int, int]] = []
    for user_id, data in users:
        history = (data or {}).get(QUIZZES_TAKEN_FIELD) or []
        if not history:
            continue
        total_score = sum(int(entry.get("score") or 0) for entry in history)
        totals.append((user_id, total_score, len(history)))

    totals.sort(key=lambda item: (-item[1], item[0]))
    return [
        LeaderboardRow(
            rank=position,
            user_id=user_id,
            total_score=total_score,
            quizzes_taken=quizzes_taken,
        )
        for position, (user_id, total_score, quizzes_taken) in enumerate(
            totals, start=1
        )
    ]


class LeaderboardAggregator:
    def __init__(self, store: DocumentStore, retry_policy: RetryPolicy = NO_RETRY):
        self.store = store
        self.retry_policy = retry_policy

    def leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardRow]:
        users = self.retry_policy.call(self.store.query_all, USERS_COLLECTION)
        rows = rank_users(users)
        if limit is not None:
            rows = rows[:limit]
        return rows
