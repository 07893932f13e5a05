from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tenant_attendance.core.constants import DEFAULT_TENANT_SETTINGS
from tenant_attendance.identity.memory_provider import InMemoryIdentityProvider
from tenant_attendance.store.memory_store import InMemoryDocumentStore
from tenant_attendance.store.paths import GLOBAL_USERS, LEGACY_USERS, TENANT_USERS, doc_path, tenant_collection, tenant_doc

FIXED_NOW = datetime(2026, 2, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(clock=clock)


@pytest.fixture
def identity() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture
def seed_tenant(store, clock):
    def _seed(tenant_id: str = "acme", company_name: str = "Acme", *, active: bool = True, **extra):
        store.set(
            tenant_doc(tenant_id),
            {
                "companyName": company_name,
                "adminEmail": f"admin@{tenant_id}.example.com",
                "isActive": active,
                "userCount": 0,
                "createdAt": clock(),
                "settings": dict(DEFAULT_TENANT_SETTINGS),
                **extra,
            },
        )
        return tenant_id

    return _seed


@pytest.fixture
def seed_user(store):
    """Write a user into the tenant and/or global stores (and optionally legacy)."""

    def _seed(
        uid: str,
        email: str,
        *,
        role: str = "employee",
        tenant_id: str = "acme",
        in_tenant: bool = True,
        in_global: bool = True,
        in_legacy: bool = False,
        **extra,
    ):
        data = {"uid": uid, "email": email, "displayName": uid.title(), "role": role, "tenantId": tenant_id, **extra}
        if in_tenant:
            store.set(doc_path(tenant_collection(tenant_id, TENANT_USERS), uid), dict(data))
        if in_global:
            store.set(doc_path(GLOBAL_USERS, uid), dict(data))
        if in_legacy:
            store.set(doc_path(LEGACY_USERS, uid), dict(data))
        return uid

    return _seed
