"""
Document store abstraction and an in-memory implementation.

Documents are plain dicts addressed by (collection, doc_id). Writes may carry
an ``ArrayUnion`` sentinel, which appends values to an array field without
the caller reading the document first.
"""

from __future__ import annotations

import copy
import threading
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Protocol, TypeVar

from quizboard.errors import NotFoundError

T = TypeVar("T")


class ArrayUnion:
    """Append each value to an array field unless an equal value is present."""

    def __init__(self, values):
        self.values = list(values)

    def __eq__(self, other):
        return isinstance(other, ArrayUnion) and self.values == other.values

    def __repr__(self):
        return f"ArrayUnion({self.values!r})"


class Transaction(Protocol):
    """Operations available inside ``DocumentStore.run_transaction``.

    Reads observe the state committed before the transaction started and
    must happen before any write.
    """

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        ...

    def update(self, collection: str, doc_id: str, patch: dict) -> None:
        ...


class DocumentStore(Protocol):
    """Interface for document store access."""

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        ...

    def update(self, collection: str, doc_id: str, patch: dict) -> None:
        ...

    def add(self, collection: str, data: dict) -> str:
        ...

    def query_all(self, collection: str) -> list[tuple[str, dict]]:
        ...

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        ...


def apply_patch(base: Optional[dict], patch: dict) -> dict:
    """Returns ``base`` with ``patch`` applied, resolving ArrayUnion values."""
    result = copy.deepcopy(base) if base else {}
    for key, value in patch.items():
        if isinstance(value, ArrayUnion):
            current = list(result.get(key) or [])
            for item in value.values:
                if item not in current:
                    current.append(copy.deepcopy(item))
            result[key] = current
        else:
            result[key] = copy.deepcopy(value)
    return result


def new_document_id() -> str:
    return uuid.uuid4().hex


class _InMemoryTransaction:
    def __init__(self, store: "InMemoryDocumentStore"):
        self._store = store
        self.writes: Dict[tuple[str, str], dict] = {}

    def _current(self, key: tuple[str, str]) -> Optional[dict]:
        if key in self.writes:
            return self.writes[key]
        return self._store.collections.get(key[0], {}).get(key[1])

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self._store.collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        key = (collection, doc_id)
        base = self._current(key) if merge else None
        self.writes[key] = apply_patch(base, data)

    def update(self, collection: str, doc_id: str, patch: dict) -> None:
        key = (collection, doc_id)
        current = self._current(key)
        if current is None:
            raise NotFoundError(f"Document {collection}/{doc_id} not found")
        self.writes[key] = apply_patch(current, patch)


@dataclass
class InMemoryDocumentStore:
    """Process-local document store for development and tests."""

    collections: Dict[str, Dict[str, dict]] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.RLock()

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            doc = self.collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        self.run_transaction(lambda txn: txn.set(collection, doc_id, data, merge=merge))

    def update(self, collection: str, doc_id: str, patch: dict) -> None:
        self.run_transaction(lambda txn: txn.update(collection, doc_id, patch))

    def add(self, collection: str, data: dict) -> str:
        doc_id = new_document_id()
        self.set(collection, doc_id, data)
        return doc_id

    def query_all(self, collection: str) -> list[tuple[str, dict]]:
        with self._lock:
            return [
                (doc_id, copy.deepcopy(doc))
                for doc_id, doc in self.collections.get(collection, {}).items()
            ]

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        # Holding the lock for the whole callback serializes transactions;
        # staged writes are discarded if the callback raises.
        with self._lock:
            txn = _InMemoryTransaction(self)
            result = fn(txn)
            for (collection, doc_id), doc in txn.writes.items():
                self.collections.setdefault(collection, {})[doc_id] = doc
            return result

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.collections.clear()
