from __future__ import annotations

import copy
import threading
import uuid
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.exceptions import NotFoundError
from .base import Filter, TransactFn, apply_changes, select
from .document import Document
from .paths import split_path


class InMemoryWriteBatch:
    def __init__(self, store: "InMemoryDocumentStore"):
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
        self._store._apply_ops(self._ops)
        self._ops = []


class InMemoryDocumentStore:
    """Process-local store for tests and local development."""

    def __init__(self, *, clock: Callable = now_utc):
        self._docs: dict[str, dict] = {}
        self._lock = threading.RLock()
        self._clock = clock

    def get(self, path: str) -> Optional[Document]:
        with self._lock:
            data = self._docs.get(path)
            return Document(path, copy.deepcopy(data)) if data is not None else None

    def list(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Document]:
        with self._lock:
            docs = [
                Document(path, copy.deepcopy(data))
                for path, data in self._docs.items()
                if path.rsplit("/", 1)[0] == collection
            ]
        return select(docs, filters=filters, order_by=order_by, descending=descending, limit=limit)

    def set(self, path: str, data: dict, *, merge: bool = False) -> None:
        self._apply_ops([("set", path, data, merge)])

    def update(self, path: str, data: dict) -> None:
        self._apply_ops([("update", path, data, True)])

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.set(f"{collection}/{doc_id}", data)
        return doc_id

    def delete(self, path: str) -> None:
        self._apply_ops([("delete", path, None, False)])

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    def transact(self, path: str, fn: TransactFn) -> Optional[Document]:
        with self._lock:
            current = self.get(path)
            changes = fn(current)
            if changes is None:
                return current
            self._docs[path] = apply_changes(current.data if current else None, changes, self._clock())
            return self.get(path)

    def _apply_ops(self, ops) -> None:
        with self._lock:
            staged = dict(self._docs)
            now = self._clock()
            for kind, path, data, merge in ops:
                split_path(path)
                if kind == "update" and path not in staged:
                    raise NotFoundError(f"No document to update: {path}")
                if kind == "delete":
                    staged.pop(path, None)
                elif kind == "update" or merge:
                    staged[path] = apply_changes(staged.get(path), data, now)
                else:
                    staged[path] = apply_changes(None, data, now)
            self._docs = staged
