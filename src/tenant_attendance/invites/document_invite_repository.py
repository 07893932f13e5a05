from __future__ import annotations

from typing import Callable, Optional, Sequence

from ..common.datetime_utils import coerce_datetime
from ..store.base import DocumentStore
from ..store.document import Document
from ..store.paths import INVITE_CODES, doc_path
from ..store.values import SERVER_TIMESTAMP, Increment
from .model import InviteCode
from .repository import InviteRepository


def invite_from_document(doc: Document) -> InviteCode:
    data = doc.data
    max_uses = data.get("maxUses")
    return InviteCode(
        invite_id=doc.id,
        code=data.get("code") or "",
        tenant_id=data.get("tenantId") or "",
        company_name=data.get("companyName") or "",
        expires_at=coerce_datetime(data.get("expiresAt")),
        max_uses=int(max_uses) if max_uses is not None else None,
        used=int(data.get("used") or 0),
        active=bool(data.get("active", False)),
        created_by=data.get("createdBy"),
        created_by_email=data.get("createdByEmail"),
        created_at=coerce_datetime(data.get("createdAt")),
        last_used_at=coerce_datetime(data.get("lastUsedAt")),
    )


class DocumentInviteRepository(InviteRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get(self, invite_id: str) -> Optional[InviteCode]:
        doc = self._store.get(doc_path(INVITE_CODES, invite_id))
        return invite_from_document(doc) if doc else None

    def find_by_code(self, code: str) -> Optional[InviteCode]:
        docs = self._store.list(INVITE_CODES, filters=[("code", "==", code)], limit=1)
        return invite_from_document(docs[0]) if docs else None

    def create(self, data: dict) -> str:
        return self._store.add(INVITE_CODES, data)

    def list_for_tenant(self, tenant_id: str, *, limit: int) -> Sequence[InviteCode]:
        docs = self._store.list(
            INVITE_CODES,
            filters=[("tenantId", "==", tenant_id)],
            order_by="createdAt",
            descending=True,
            limit=limit,
        )
        return [invite_from_document(d) for d in docs]

    def set_active(self, invite_id: str, *, active: bool) -> None:
        self._store.update(doc_path(INVITE_CODES, invite_id), {"active": bool(active), "updatedAt": SERVER_TIMESTAMP})

    def consume(self, invite_id: str, *, check: Callable[[Optional[InviteCode]], None]) -> InviteCode:
        def _consume(current: Optional[Document]):
            check(invite_from_document(current) if current else None)
            return {"used": Increment(1), "lastUsedAt": SERVER_TIMESTAMP}

        doc = self._store.transact(doc_path(INVITE_CODES, invite_id), _consume)
        return invite_from_document(doc)
