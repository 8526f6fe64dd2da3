"""
Firestore-backed document store.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Callable, Optional, TypeVar

import firebase_admin
from firebase_admin import firestore
from google.api_core import exceptions

from quizboard.errors import NotFoundError, StoreError, TransientStoreError
from quizboard.store import ArrayUnion, Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (
    exceptions.Aborted,
    exceptions.DeadlineExceeded,
    exceptions.InternalServerError,
    exceptions.ServiceUnavailable,
    exceptions.TooManyRequests,
)

_CONTENTION_EXHAUSTED = "Failed to commit transaction"


@contextlib.contextmanager
def _translate_errors(operation: str):
    try:
        yield
    except exceptions.NotFound as e:
        raise NotFoundError(f"{operation}: document not found") from e
    except TRANSIENT_ERRORS as e:
        logger.warning("Transient Firestore error during %s: %s", operation, e)
        raise TransientStoreError(f"{operation} failed: {e}") from e
    except exceptions.GoogleAPICallError as e:
        raise StoreError(f"{operation} failed: {e}") from e


def _to_firestore(data: dict) -> dict:
    return {
        key: firestore.ArrayUnion(list(value.values))
        if isinstance(value, ArrayUnion)
        else value
        for key, value in data.items()
    }


class _FirestoreTransaction:
    def __init__(self, client, transaction):
        self._client = client
        self._transaction = transaction

    def _ref(self, collection: str, doc_id: str):
        return self._client.collection(collection).document(doc_id)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self._ref(collection, doc_id).get(transaction=self._transaction)
        return snapshot.to_dict() if snapshot.exists else None

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        self._transaction.set(
            self._ref(collection, doc_id), _to_firestore(data), merge=merge
        )

    def update(self, collection: str, doc_id: str, patch: dict) -> None:
        self._transaction.update(self._ref(collection, doc_id), _to_firestore(patch))


class FirestoreDocumentStore:
    """
    Document store on top of the Firebase Admin Firestore client.

    ``client`` may be injected (tests, emulator); otherwise the default
    Firebase app is initialized with application default credentials.
    """

    def __init__(self, client=None, project_id: str | None = None):
        if client is None:
            try:
                firebase_admin.get_app()
            except ValueError:
                options = {"projectId": project_id} if project_id else None
                firebase_admin.initialize_app(options=options)
            client = firestore.client()
        self._client = client

    def _ref(self, collection: str, doc_id: str):
        return self._client.collection(collection).document(doc_id)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with _translate_errors(f"get {collection}/{doc_id}"):
            snapshot = self._ref(collection, doc_id).get()
        return snapshot.to_dict() if snapshot.exists else None

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        with _translate_errors(f"set {collection}/{doc_id}"):
            self._ref(collection, doc_id).set(_to_firestore(data), merge=merge)

    def update(self, collection: str, doc_id: str, patch: dict) -> None:
        with _translate_errors(f"update {collection}/{doc_id}"):
            self._ref(collection, doc_id).update(_to_firestore(patch))

    def add(self, collection: str, data: dict) -> str:
        with _translate_errors(f"add {collection}"):
            _, doc_ref = self._client.collection(collection).add(_to_firestore(data))
        return doc_ref.id

    def query_all(self, collection: str) -> list[tuple[str, dict]]:
        with _translate_errors(f"query {collection}"):
            return [
                (snapshot.id, snapshot.to_dict())
                for snapshot in self._client.collection(collection).stream()
            ]

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        transaction = self._client.transaction()

        @firestore.transactional
        def _run(transaction):
            return fn(_FirestoreTransaction(self._client, transaction))

        with _translate_errors("transaction"):
            try:
                return _run(transaction)
            except ValueError as e:
                # Raised by the client once its own commit attempts run out.
                if not str(e).startswith(_CONTENTION_EXHAUSTED):
                    raise
                logger.warning("Firestore transaction contention: %s", e)
                raise TransientStoreError(f"transaction failed: {e}") from e
