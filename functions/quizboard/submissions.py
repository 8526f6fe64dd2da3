"""
Records scored quiz submissions and per-user quiz history.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from quizboard import scoring
from quizboard.documents import (
    from_document,
    timestamp_text,
    to_document,
    utc_timestamp,
)
from quizboard.errors import NotFoundError
from quizboard.quizzes import QuizCatalog
from quizboard.retry import NO_RETRY, RetryPolicy
from quizboard.store import ArrayUnion, DocumentStore, Transaction
from shared.firebase_constants import (
    QUIZZES_TAKEN_FIELD,
    RESULTS_COLLECTION,
    USERS_COLLECTION,
)
from shared.types import Answer, Submission, UserHistoryEntry

logger = logging.getLogger(__name__)

_IDEMPOTENCY_NAMESPACE = uuid.UUID("6f1c1f0e-7a55-4f55-9a3e-2f7d1b9c4e21")


@dataclass
class SubmissionReceipt:
    submission_id: str
    score: int
    # True when the submission id was already recorded and nothing was written.
    replayed: bool = False


def submission_id_for(
    quiz_id: str, user_id: str, idempotency_key: Optional[str] = None
) -> str:
    """
    Returns the results document id for a submission.

    With an idempotency key the id is derived from (user, quiz, key) so a
    client retry maps onto the same document; otherwise it is random.
    """
    if idempotency_key:
        name = f"{user_id}:{quiz_id}:{idempotency_key}"
        return uuid.uuid5(_IDEMPOTENCY_NAMESPACE, name).hex
    return uuid.uuid4().hex


class SubmissionRecorder:
    def __init__(
        self,
        store: DocumentStore,
        catalog: QuizCatalog | None = None,
        retry_policy: RetryPolicy = NO_RETRY,
    ):
        self.store = store
        self.catalog = catalog or QuizCatalog(store, retry_policy)
        self.retry_policy = retry_policy

    def submit(
        self,
        quiz_id: str,
        user_id: str,
        answers: List[Answer],
        idempotency_key: Optional[str] = None,
    ) -> SubmissionReceipt:
        """
        Scores ``answers`` against the quiz and records the attempt.

        The results insert and the history append commit in one store
        transaction. The submission id is fixed before the first attempt, so
        a retry after an ambiguous commit finds the existing result and
        replays it instead of counting the attempt twice.
        """
        quiz = self.catalog.get_quiz(quiz_id)
        score = scoring.score(quiz, answers)
        submission_id = submission_id_for(quiz_id, user_id, idempotency_key)
        submitted_at = utc_timestamp()

        submission = Submission(
            quiz_id=quiz_id,
            user_id=user_id,
            answers=list(answers),
            score=score,
            submitted_at=submitted_at,
        )
        entry = UserHistoryEntry(
            quiz_id=quiz_id,
            score=score,
            completed_at=submitted_at,
            submission_id=submission_id,
        )

        def _record(txn: Transaction) -> SubmissionReceipt:
            existing = txn.get(RESULTS_COLLECTION, submission_id)
            if existing is not None:
                return SubmissionReceipt(
                    submission_id=submission_id,
                    score=int(existing.get("score", 0)),
                    replayed=True,
                )
            txn.set(RESULTS_COLLECTION, submission_id, to_document(submission))
            txn.set(
                USERS_COLLECTION,
                user_id,
                {QUIZZES_TAKEN_FIELD: ArrayUnion([to_document(entry)])},
                merge=True,
            )
            return SubmissionReceipt(submission_id=submission_id, score=score)

        receipt = self.retry_policy.call(self.store.run_transaction, _record)
        if receipt.replayed:
            logger.info(
                "Replayed submission %s for quiz %s by user %s",
                submission_id,
                quiz_id,
                user_id,
            )
        else:
            logger.info(
                "Recorded submission %s for quiz %s by user %s: score %d",
                submission_id,
                quiz_id,
                user_id,
                score,
            )
        return receipt

    def history(self, user_id: str) -> List[UserHistoryEntry]:
        data = self.retry_policy.call(self.store.get, USERS_COLLECTION, user_id)
        if data is None:
            raise NotFoundError("User not found")
        return [
            from_document(
                UserHistoryEntry,
                {**item, "completedAt": timestamp_text(item.get("completedAt"))},
            )
            for item in data.get(QUIZZES_TAKEN_FIELD) or []
        ]
