from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role, UserSource
from ..core.exceptions import ValidationError
from ..store.base import DocumentStore, WriteBatch
from ..store.document import Document
from ..store.paths import GLOBAL_USERS, LEGACY_USERS, TENANT_USERS, doc_path, tenant_collection
from ..store.values import SERVER_TIMESTAMP, ArrayUnion
from .model import UserProfile
from .repository import UserRepository


def parse_role(value) -> Role:
    if value in (None, ""):
        return Role.EMPLOYEE
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Unknown role: {value!r}")


def profile_from_document(doc: Document, source: UserSource, *, tenant_id: Optional[str] = None) -> UserProfile:
    data = doc.data
    return UserProfile(
        uid=data.get("uid") or doc.id,
        email=data.get("email") or "",
        display_name=data.get("displayName") or data.get("name") or "",
        role=parse_role(data.get("role")),
        tenant_id=data.get("tenantId") or tenant_id,
        source=source,
        is_active=bool(data.get("isActive", True)),
        site_history=tuple(data.get("siteHistory") or ()),
    )


class DocumentUserRepository(UserRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def _path(self, profile: UserProfile) -> str:
        if profile.source == UserSource.TENANT:
            return doc_path(tenant_collection(profile.tenant_id, TENANT_USERS), profile.uid)
        if profile.source == UserSource.GLOBAL:
            return doc_path(GLOBAL_USERS, profile.uid)
        return doc_path(LEGACY_USERS, profile.uid)

    def get_tenant_user(self, tenant_id: str, uid: str) -> Optional[UserProfile]:
        doc = self._store.get(doc_path(tenant_collection(tenant_id, TENANT_USERS), uid))
        return profile_from_document(doc, UserSource.TENANT, tenant_id=tenant_id) if doc else None

    def get_global_user(self, uid: str) -> Optional[UserProfile]:
        doc = self._store.get(doc_path(GLOBAL_USERS, uid))
        return profile_from_document(doc, UserSource.GLOBAL) if doc else None

    def get_legacy_user(self, uid: str) -> Optional[UserProfile]:
        doc = self._store.get(doc_path(LEGACY_USERS, uid))
        return profile_from_document(doc, UserSource.LEGACY) if doc else None

    def set_role(self, profile: UserProfile, role: Role) -> None:
        self._store.update(self._path(profile), {"role": role.value, "updatedAt": SERVER_TIMESTAMP})

    def list_tenant_users(self, tenant_id: str, *, role: Optional[Role] = None) -> Sequence[UserProfile]:
        filters = [("role", "==", role.value)] if role else []
        docs = self._store.list(
            tenant_collection(tenant_id, TENANT_USERS), filters=filters, order_by="displayName"
        )
        return [profile_from_document(d, UserSource.TENANT, tenant_id=tenant_id) for d in docs]

    def add_site_history(self, tenant_id: str, uid: str, site_name: str) -> None:
        self._store.update(
            doc_path(tenant_collection(tenant_id, TENANT_USERS), uid),
            {"siteHistory": ArrayUnion([site_name]), "updatedAt": SERVER_TIMESTAMP},
        )

    def stage_tenant_user(self, batch: WriteBatch, tenant_id: str, uid: str, data: dict) -> None:
        batch.set(doc_path(tenant_collection(tenant_id, TENANT_USERS), uid), data)

    def stage_global_user(self, batch: WriteBatch, uid: str, data: dict) -> None:
        batch.set(doc_path(GLOBAL_USERS, uid), data)
