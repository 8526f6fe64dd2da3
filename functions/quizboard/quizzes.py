"""
Quiz catalog: creation and lookup of quiz documents.
"""

from __future__ import annotations

import logging
import uuid
from typing import List

from quizboard.documents import (
    from_document,
    timestamp_text,
    to_document,
    utc_timestamp,
)
from quizboard.errors import NotFoundError, ValidationError
from quizboard.retry import NO_RETRY, RetryPolicy
from quizboard.store import DocumentStore
from shared.firebase_constants import QUIZZES_COLLECTION
from shared.types import Question, Quiz, QuizSummary

logger = logging.getLogger(__name__)


def _validate_questions(questions: List[Question]) -> None:
    seen_questions: set[str] = set()
    for question in questions:
        if question.question_id in seen_questions:
            raise ValidationError(f"Duplicate questionId: {question.question_id}")
        seen_questions.add(question.question_id)

        seen_options: set[str] = set()
        for option in question.options:
            if option.id in seen_options:
                raise ValidationError(
                    f"Duplicate option id {option.id} in question {question.question_id}"
                )
            seen_options.add(option.id)


class QuizCatalog:
    def __init__(self, store: DocumentStore, retry_policy: RetryPolicy = NO_RETRY):
        self.store = store
        self.retry_policy = retry_policy

    def create_quiz(
        self, title: str, description: str, questions: List[Question]
    ) -> str:
        _validate_questions(questions)
        quiz = Quiz(
            id=uuid.uuid4().hex,
            title=title,
            description=description,
            questions=questions,
            created_at=utc_timestamp(),
        )
        # set() on a fixed id is idempotent, so retrying is safe.
        self.retry_policy.call(
            self.store.set,
            QUIZZES_COLLECTION,
            quiz.id,
            to_document(quiz, exclude=("id",)),
        )
        logger.info("Created quiz %s with %d questions", quiz.id, len(questions))
        return quiz.id

    def list_quizzes(self) -> List[QuizSummary]:
        docs = self.retry_policy.call(self.store.query_all, QUIZZES_COLLECTION)
        docs.sort(key=lambda item: (timestamp_text(item[1].get("createdAt")), item[0]))
        return [
            QuizSummary(
                quiz_id=quiz_id,
                title=data.get("title", ""),
                description=data.get("description", ""),
            )
            for quiz_id, data in docs
        ]

    def get_quiz(self, quiz_id: str) -> Quiz:
        data = self.retry_policy.call(self.store.get, QUIZZES_COLLECTION, quiz_id)
        if data is None:
            raise NotFoundError("Quiz not found")
        return from_document(
            Quiz,
            {**data, "id": quiz_id, "createdAt": timestamp_text(data.get("createdAt"))},
        )
