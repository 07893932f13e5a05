from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as gcloud_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from ..common.datetime_utils import now_utc
from ..core.exceptions import NotFoundError
from .base import Filter, TransactFn, apply_changes
from .document import Document
from .paths import split_path
from .values import SERVER_TIMESTAMP, ArrayUnion, Increment

logger = logging.getLogger(__name__)


def _to_firestore(value: Any) -> Any:
    if value is SERVER_TIMESTAMP:
        return firestore.SERVER_TIMESTAMP
    if isinstance(value, Increment):
        return firestore.Increment(value.amount)
    if isinstance(value, ArrayUnion):
        return firestore.ArrayUnion(list(value.values))
    if isinstance(value, dict):
        return {k: _to_firestore(v) for k, v in value.items()}
    return value


def _convert(data: dict) -> dict:
    return {k: _to_firestore(v) for k, v in data.items()}


def get_firebase_app(*, credentials_path: Optional[str] = None, project_id: Optional[str] = None):
    """Return the default firebase app, initializing it once per process."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        cred = credentials.Certificate(credentials_path) if credentials_path else credentials.ApplicationDefault()
        options = {"projectId": project_id} if project_id else None
        logger.info("Initializing firebase app (project=%s)", project_id or "<from credentials>")
        return firebase_admin.initialize_app(cred, options)


class FirestoreWriteBatch:
    def __init__(self, client):
        self._client = client
        self._batch = client.batch()
        self._count = 0

    def set(self, path: str, data: dict, *, merge: bool = False) -> None:
        split_path(path)
        self._batch.set(self._client.document(path), _convert(data), merge=merge)
        self._count += 1

    def update(self, path: str, data: dict) -> None:
        split_path(path)
        self._batch.update(self._client.document(path), _convert(data))
        self._count += 1

    def delete(self, path: str) -> None:
        split_path(path)
        self._batch.delete(self._client.document(path))
        self._count += 1

    def __len__(self) -> int:
        return self._count

    def commit(self) -> None:
        try:
            self._batch.commit()
        except gcloud_exceptions.NotFound as e:
            raise NotFoundError(str(e)) from e
        self._count = 0


class FirestoreDocumentStore:
    """DocumentStore backed by Cloud Firestore through firebase-admin."""

    def __init__(self, client):
        self._db = client

    @classmethod
    def from_settings(cls, *, credentials_path: Optional[str], project_id: Optional[str]) -> "FirestoreDocumentStore":
        app = get_firebase_app(credentials_path=credentials_path, project_id=project_id)
        return cls(firestore.client(app))

    def get(self, path: str) -> Optional[Document]:
        split_path(path)
        snap = self._db.document(path).get()
        if not snap.exists:
            return None
        return Document(path, snap.to_dict() or {})

    def list(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Document]:
        query = self._db.collection(collection)
        for field, op, value in filters:
            query = query.where(filter=FieldFilter(field, op, value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(int(limit))
        return [Document(f"{collection}/{snap.id}", snap.to_dict() or {}) for snap in query.stream()]

    def set(self, path: str, data: dict, *, merge: bool = False) -> None:
        split_path(path)
        self._db.document(path).set(_convert(data), merge=merge)

    def update(self, path: str, data: dict) -> None:
        split_path(path)
        try:
            self._db.document(path).update(_convert(data))
        except gcloud_exceptions.NotFound as e:
            raise NotFoundError(f"No document to update: {path}") from e

    def add(self, collection: str, data: dict) -> str:
        _, ref = self._db.collection(collection).add(_convert(data))
        return ref.id

    def delete(self, path: str) -> None:
        split_path(path)
        self._db.document(path).delete()

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self._db)

    def transact(self, path: str, fn: TransactFn) -> Optional[Document]:
        split_path(path)
        ref = self._db.document(path)

        @firestore.transactional
        def _run(transaction):
            snap = ref.get(transaction=transaction)
            current = Document(path, snap.to_dict() or {}) if snap.exists else None
            changes = fn(current)
            if changes is None:
                return current
            transaction.set(ref, _convert(changes), merge=True)
            # Server-side sentinels are approximated locally for the returned snapshot.
            return Document(path, apply_changes(current.data if current else None, changes, now_utc()))

        return _run(self._db.transaction())
