from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import coerce_datetime
from ..core.exceptions import ValidationError
from ..store.base import DocumentStore, WriteBatch
from ..store.document import Document
from ..store.paths import TENANTS, tenant_doc
from ..store.values import SERVER_TIMESTAMP, Increment
from .model import Tenant
from .repository import TenantRepository


def _is_active(data: dict) -> bool:
    if "isActive" in data:
        return bool(data["isActive"])
    if "status" in data:
        return data["status"] == "active"
    # Tenants written before either flag existed.
    return True


def tenant_from_document(doc: Document) -> Tenant:
    data = doc.data
    return Tenant(
        tenant_id=doc.id,
        company_name=data.get("companyName") or data.get("name") or "",
        admin_email=data.get("adminEmail") or "",
        is_active=_is_active(data),
        user_count=int(data.get("userCount") or 0),
        created_at=coerce_datetime(data.get("createdAt")),
        settings=dict(data.get("settings") or {}),
        migrated=bool(data.get("migrated", False)),
    )


class DocumentTenantRepository(TenantRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get(self, tenant_id: str) -> Optional[Tenant]:
        doc = self._store.get(tenant_doc(tenant_id))
        return tenant_from_document(doc) if doc else None

    def list_active(self) -> Sequence[Tenant]:
        # Older tenants carry status instead of isActive, so filter after mapping.
        return [t for t in self.list_all() if t.is_active]

    def list_all(self) -> Sequence[Tenant]:
        return [tenant_from_document(d) for d in self._store.list(TENANTS, order_by="createdAt", descending=True)]

    def create(self, *, tenant_id: str, company_name: str, admin_email: str, settings: dict) -> None:
        def _create(current: Optional[Document]):
            if current is not None:
                raise ValidationError("This company ID is already in use")
            return {
                "companyName": company_name,
                "adminEmail": admin_email,
                "isActive": True,
                "userCount": 0,
                "createdAt": SERVER_TIMESTAMP,
                "updatedAt": SERVER_TIMESTAMP,
                "settings": dict(settings),
            }

        self._store.transact(tenant_doc(tenant_id), _create)

    def set_active(self, tenant_id: str, *, is_active: bool) -> None:
        self._store.update(tenant_doc(tenant_id), {"isActive": bool(is_active), "updatedAt": SERVER_TIMESTAMP})

    def stage_create(self, batch: WriteBatch, *, tenant_id: str, data: dict) -> None:
        batch.set(tenant_doc(tenant_id), data)

    def stage_user_count(self, batch: WriteBatch, tenant_id: str, *, delta: int) -> None:
        batch.update(tenant_doc(tenant_id), {"userCount": Increment(delta), "updatedAt": SERVER_TIMESTAMP})
