"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from fastapi import Depends

from quizboard.config import get_settings
from quizboard.leaderboard import LeaderboardAggregator
from quizboard.quizzes import QuizCatalog
from quizboard.retry import RetryPolicy
from quizboard.store import DocumentStore, InMemoryDocumentStore
from quizboard.submissions import SubmissionRecorder

_document_store: DocumentStore | None = None


def build_document_store() -> DocumentStore:
    settings = get_settings()
    if settings.store_backend == "firestore":
        from quizboard.firestore_store import FirestoreDocumentStore

        return FirestoreDocumentStore(project_id=settings.firestore_project_id)
    if settings.store_backend == "sql":
        from quizboard.sql_store import SqlDocumentStore

        return SqlDocumentStore(settings.database_url or "")
    return InMemoryDocumentStore()


def get_document_store() -> DocumentStore:
    """
    Return a singleton store so in-memory state persists across requests.
    """
    global _document_store
    if _document_store is None:
        _document_store = build_document_store()
    return _document_store


def get_retry_policy() -> RetryPolicy:
    settings = get_settings()
    return RetryPolicy(
        attempts=settings.store_retry_attempts,
        initial_wait=settings.store_retry_initial_wait,
        max_wait=settings.store_retry_max_wait,
    )


def get_quiz_catalog(
    store: DocumentStore = Depends(get_document_store),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
) -> QuizCatalog:
    return QuizCatalog(store, retry_policy)


def get_submission_recorder(
    store: DocumentStore = Depends(get_document_store),
    catalog: QuizCatalog = Depends(get_quiz_catalog),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
) -> SubmissionRecorder:
    return SubmissionRecorder(store, catalog, retry_policy)


def get_leaderboard(
    store: DocumentStore = Depends(get_document_store),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
) -> LeaderboardAggregator:
    return LeaderboardAggregator(store, retry_policy)
