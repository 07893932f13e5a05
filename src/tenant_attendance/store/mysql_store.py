from __future__ import annotations

import uuid
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dumps_document, fetchall, fetchone, loads_document
from .base import Filter, TransactFn, apply_changes, select
from .document import Document
from .paths import split_path


class MySQLWriteBatch:
    def __init__(self, store: "MySQLDocumentStore"):
        self._store = store
        self._ops: list[tuple[str, str, Optional[dict], bool]] = []

    def set(self, path: str, data: dict, *, merge: bool = False) -> None:
        split_path(path)
        self._ops.append(("set", path, data, merge))

    def update(self, path: str, data: dict) -> None:
        split_path(path)
        self._ops.append(("update", path, data, True))

    def delete(self, path: str) -> None:
        split_path(path)
        self._ops.append(("delete", path, None, False))

    def __len__(self) -> int:
        return len(self._ops)

    def commit(self) -> None:
        with db_cursor(self._store._conn_factory) as (_, cur):
            for kind, path, data, merge in self._ops:
                self._store._write(cur, kind, path, data, merge)
        self._ops = []


class MySQLDocumentStore:
    """DocumentStore emulated on a single MySQL ``documents`` table.

    Each row holds one document as JSON; filtering and ordering happen in
    Python after loading a collection.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, clock: Callable = now_utc):
        self._conn_factory = conn_factory
        self._clock = clock

    def get(self, path: str) -> Optional[Document]:
        split_path(path)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT data FROM documents WHERE path=%s", (path,))
            row = fetchone(cur)
            if not row:
                return None
            return Document(path, loads_document(row["data"]))

    def list(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT path, data FROM documents WHERE collection=%s", (collection,))
            rows = fetchall(cur)
        docs = [Document(r["path"], loads_document(r["data"])) for r in rows]
        return select(docs, filters=filters, order_by=order_by, descending=descending, limit=limit)

    def set(self, path: str, data: dict, *, merge: bool = False) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            self._write(cur, "set", path, data, merge)

    def update(self, path: str, data: dict) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            self._write(cur, "update", path, data, True)

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.set(f"{collection}/{doc_id}", data)
        return doc_id

    def delete(self, path: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            self._write(cur, "delete", path, None, False)

    def batch(self) -> MySQLWriteBatch:
        return MySQLWriteBatch(self)

    def transact(self, path: str, fn: TransactFn) -> Optional[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            current = self._locked_read(cur, path)
            snapshot = Document(path, current) if current is not None else None
            changes = fn(snapshot)
            if changes is None:
                return snapshot
            data = apply_changes(current, changes, self._clock())
            self._upsert(cur, path, data)
            return Document(path, data)

    # -------- internals (run inside an open cursor/transaction) --------
    def _locked_read(self, cur, path: str) -> Optional[dict]:
        cur.execute("SELECT data FROM documents WHERE path=%s FOR UPDATE", (path,))
        row = fetchone(cur)
        return loads_document(row["data"]) if row else None

    def _upsert(self, cur, path: str, data: dict) -> None:
        collection, doc_id = split_path(path)
        cur.execute(
            """
            INSERT INTO documents(path, collection, doc_id, data)
            VALUES(%s,%s,%s,%s)
            ON DUPLICATE KEY UPDATE data=VALUES(data)
            """,
            (path, collection, doc_id, dumps_document(data)),
        )

    def _write(self, cur, kind: str, path: str, data: Optional[dict], merge: bool) -> None:
        split_path(path)
        if kind == "delete":
            cur.execute("DELETE FROM documents WHERE path=%s", (path,))
            return

        now = self._clock()
        if kind == "update" or merge:
            current = self._locked_read(cur, path)
            if current is None and kind == "update":
                raise NotFoundError(f"No document to update: {path}")
            self._upsert(cur, path, apply_changes(current, data or {}, now))
        else:
            self._upsert(cur, path, apply_changes(None, data or {}, now))
