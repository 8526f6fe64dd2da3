"""
SQLAlchemy-backed document store.

Every document lives in a single ``documents`` table keyed by
(collection, doc_id) with a JSON body. Accepts any SQLAlchemy URL
(e.g., Postgres, or SQLite for tests).
"""

from __future__ import annotations

import contextlib
import copy
import logging
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import JSON, Column, Float, String, create_engine, event, select
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from quizboard.errors import NotFoundError, StoreError, TransientStoreError
from quizboard.store import Transaction, apply_patch, new_document_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextlib.contextmanager
def _translate_errors(operation: str):
    try:
        yield
    except (sa_exc.OperationalError, sa_exc.IntegrityError) as e:
        # Lost connections, deadlocks and concurrent first inserts of the
        # same key all succeed when the whole unit is retried.
        logger.warning("Transient database error during %s: %s", operation, e)
        raise TransientStoreError(f"{operation} failed: {e}") from e
    except sa_exc.SQLAlchemyError as e:
        raise StoreError(f"{operation} failed: {e}") from e


def _serialize_sqlite_transactions(engine) -> None:
    # pysqlite defers BEGIN until the first write, so reads would not be
    # isolated. SQLite has no row locks; take the write lock up front.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class _SqlTransaction:
    def __init__(self, session: Session):
        self._session = session

    def _row(self, collection: str, doc_id: str) -> Optional["DocumentRow"]:
        return self._session.get(DocumentRow, (collection, doc_id), with_for_update=True)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        row = self._row(collection, doc_id)
        return copy.deepcopy(row.data) if row else None

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        row = self._row(collection, doc_id)
        if row:
            # Reassign rather than mutate so the JSON column is marked dirty.
            row.data = apply_patch(row.data if merge else None, data)
            row.updated_at = time.time()
        else:
            self._session.add(
                DocumentRow(
                    collection=collection,
                    doc_id=doc_id,
                    data=apply_patch(None, data),
                    updated_at=time.time(),
                )
            )
        self._session.flush()

    def update(self, collection: str, doc_id: str, patch: dict) -> None:
        row = self._row(collection, doc_id)
        if not row:
            raise NotFoundError(f"Document {collection}/{doc_id} not found")
        row.data = apply_patch(row.data, patch)
        row.updated_at = time.time()
        self._session.flush()


class SqlDocumentStore:
    """Document store over a relational database via SQLAlchemy."""

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("database_url is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        if self.engine.dialect.name == "sqlite":
            _serialize_sqlite_transactions(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with _translate_errors(f"get {collection}/{doc_id}"):
            with self.Session() as session:
                row = session.get(DocumentRow, (collection, doc_id))
                return copy.deepcopy(row.data) if row else None

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
        with _translate_errors(f"query {collection}"):
            with self.Session() as session:
                stmt = (
                    select(DocumentRow)
                    .where(DocumentRow.collection == collection)
                    .order_by(DocumentRow.doc_id.asc())
                )
                return [
                    (row.doc_id, copy.deepcopy(row.data))
                    for row in session.execute(stmt).scalars()
                ]

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        with _translate_errors("transaction"):
            with self.Session() as session, session.begin():
                return fn(_SqlTransaction(session))


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    doc_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(Float, nullable=False)
