from __future__ import annotations

import pytest

from tenant_attendance.core.enums import Role, UserSource
from tenant_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tenant_attendance.users.document_user_repository import DocumentUserRepository
from tenant_attendance.users.role_resolver import RoleResolver


@pytest.fixture
def resolver(store) -> RoleResolver:
    return RoleResolver(DocumentUserRepository(store), super_admin_emails=["Owner@Example.com"])


def test_tenant_record_wins(resolver, seed_user, store):
    seed_user("u1", "u1@example.com", role="admin")
    store.update("global_users/u1", {"role": "employee"})

    identity = resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme")

    assert identity.role == Role.ADMIN
    assert identity.source == UserSource.TENANT
    assert identity.tenant_id == "acme"
    assert not identity.corrected


def test_falls_back_to_global_record(resolver, seed_user):
    seed_user("u1", "u1@example.com", in_tenant=False)

    identity = resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme")
    assert identity.source == UserSource.GLOBAL
    assert identity.role == Role.EMPLOYEE


def test_falls_back_to_legacy_record(resolver, seed_user):
    seed_user("u1", "u1@example.com", in_tenant=False, in_global=False, in_legacy=True)

    identity = resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme")
    assert identity.source == UserSource.LEGACY


def test_legacy_record_without_tenant_is_rejected(resolver, store):
    store.set("users/u1", {"email": "u1@example.com", "role": "employee"})

    with pytest.raises(AuthorizationError):
        resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme")


def test_missing_record(resolver):
    with pytest.raises(NotFoundError):
        resolver.resolve(uid="ghost", email="ghost@example.com", tenant_id="acme")


def test_missing_role_defaults_to_employee(resolver, store):
    store.set("tenants/acme/users/u1", {"email": "u1@example.com"})
    assert resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme").role == Role.EMPLOYEE


def test_unknown_role_is_rejected(resolver, seed_user):
    seed_user("u1", "u1@example.com", role="manager")
    with pytest.raises(ValidationError):
        resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme")


def test_super_admin_email_is_corrected_and_persisted(resolver, seed_user, store):
    seed_user("boss", "owner@example.com", role="admin")

    identity = resolver.resolve(uid="boss", email="OWNER@example.com", tenant_id="acme")

    assert identity.role == Role.SUPER_ADMIN
    assert identity.corrected
    assert store.get("tenants/acme/users/boss").data["role"] == "super_admin"
    assert store.get("global_users/boss").data["role"] == "super_admin"


def test_super_admin_needs_no_correction_when_already_stored(resolver, seed_user):
    seed_user("boss", "owner@example.com", role="super_admin")
    identity = resolver.resolve(uid="boss", email="owner@example.com", tenant_id="acme")
    assert identity.role == Role.SUPER_ADMIN
    assert not identity.corrected


def test_super_admin_may_enter_any_tenant(resolver, seed_user):
    seed_user("boss", "owner@example.com", role="super_admin", tenant_id="hq", in_tenant=False)

    identity = resolver.resolve(uid="boss", email="owner@example.com", tenant_id="acme")
    assert identity.tenant_id == "acme"


def test_user_from_other_tenant_is_rejected(resolver, seed_user):
    seed_user("u1", "u1@example.com", tenant_id="other", in_tenant=False)

    with pytest.raises(AuthorizationError):
        resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme")


def test_tenant_record_whose_home_is_elsewhere_is_rejected(resolver, seed_user, store):
    seed_user("u1", "u1@example.com")
    store.update("global_users/u1", {"tenantId": "other"})

    with pytest.raises(AuthorizationError):
        resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme")


def test_disabled_account_is_rejected(resolver, seed_user):
    seed_user("u1", "u1@example.com", isActive=False)
    with pytest.raises(AuthorizationError, match="disabled"):
        resolver.resolve(uid="u1", email="u1@example.com", tenant_id="acme")
