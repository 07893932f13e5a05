from __future__ import annotations

import pytest

from tenant_attendance.main import create_app


@pytest.fixture
def app(store, identity, seed_tenant):
    seed_tenant("acme", "Acme")
    app = create_app("tenant_attendance.settings.testing", store=store, identity=identity)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client, identity):
    def _login(email: str, password: str = "secret1", tenant: str = "acme"):
        token = identity.sign_in(email, password)
        return client.post("/api/session", json={"tenant": tenant, "id_token": token})

    return _login


@pytest.fixture
def admin(client, identity, seed_user, login):
    user = identity.create_user(email="admin@acme.example.com", password="secret1", display_name="Admin")
    seed_user(user.uid, user.email, role="admin")
    resp = login(user.email)
    assert resp.status_code == 200
    return user


def test_list_and_resolve_tenants(client, seed_tenant):
    seed_tenant("closed", "Closed", active=False)

    resp = client.get("/api/tenants")
    assert resp.status_code == 200
    assert [t["id"] for t in resp.get_json()["tenants"]] == ["acme"]

    assert client.get("/api/tenants/resolve?tenant=acme").get_json()["tenant"]["companyName"] == "Acme"

    resp = client.get("/api/tenants/resolve?tenant=closed")
    assert resp.status_code == 404
    body = resp.get_json()
    assert body == {
        "success": False,
        "message": "Company selection required",
        "reason": "inactive",
        "selectionRequired": True,
    }


def test_create_tenant(client):
    resp = client.post(
        "/api/tenants",
        json={"companyName": "Beta", "tenantId": "beta", "adminEmail": "boss@beta.example.com"},
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["tenant"]["id"] == "beta"
    assert body["url"] == "http://testserver/?tenant=beta"

    resp = client.post(
        "/api/tenants",
        json={"companyName": "Beta", "tenantId": "beta", "adminEmail": "boss@beta.example.com"},
    )
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_suggest_tenant_id(client):
    assert client.get("/api/tenants/suggest-id", query_string={"companyName": "Acme Trading"}).get_json()["tenantId"] == "acme-trading"


def test_protected_routes_require_session(client):
    resp = client.get("/api/attendance")
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_session_rejects_unknown_tenant(client, identity):
    identity.create_user(email="a@example.com", password="secret1", display_name="A")
    token = identity.sign_in("a@example.com", "secret1")

    resp = client.post("/api/session", json={"tenant": "ghost", "id_token": token})
    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "not_found"


def test_session_rejects_bad_token(client):
    resp = client.post("/api/session", json={"tenant": "acme", "id_token": "forged"})
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "auth/invalid-id-token"


def test_session_for_user_without_record(client, identity, login):
    identity.create_user(email="a@example.com", password="secret1", display_name="A")
    resp = login("a@example.com")
    assert resp.status_code == 401


def test_super_admin_email_is_promoted_on_sign_in(client, identity, seed_user, login, store):
    user = identity.create_user(email="owner@example.com", password="secret1", display_name="Owner")
    seed_user(user.uid, user.email, role="employee")

    body = login(user.email).get_json()

    assert body["user"]["role"] == "super_admin"
    assert body["corrected"] is True
    assert store.get(f"tenants/acme/users/{user.uid}").data["role"] == "super_admin"


def test_invite_registration_and_attendance_flow(client, admin, login):
    resp = client.post("/api/invites")
    assert resp.status_code == 201
    invite = resp.get_json()
    code = invite["invite"]["code"]
    assert invite["link"] == f"http://testserver/?invite={code}"

    validated = client.get(f"/api/invites/validate?invite={code}").get_json()
    assert validated["companyName"] == "Acme"

    resp = client.post(
        "/api/register/employee",
        json={"email": "taro@acme.example.com", "password": "secret1", "displayName": "Taro", "invite": code},
    )
    assert resp.status_code == 201
    assert resp.get_json()["user"]["tenantId"] == "acme"

    history = client.get("/api/invites").get_json()["invites"]
    assert history[0]["used"] == 1
    assert history[0]["status"] == "active"

    client.delete("/api/session")
    assert login("taro@acme.example.com").status_code == 200

    resp = client.post("/api/attendance/clock-in", json={"siteName": "Shibuya"})
    assert resp.status_code == 201
    assert client.post("/api/attendance/break-start").status_code == 201
    assert client.post("/api/attendance/clock-out").status_code == 400
    assert client.post("/api/attendance/break-end").status_code == 200
    resp = client.post("/api/attendance/clock-out", json={"notes": "done"})
    assert resp.status_code == 200
    assert resp.get_json()["record"]["notes"] == "done"

    records = client.get("/api/attendance").get_json()["records"]
    assert len(records) == 1
    assert records[0]["siteName"] == "Shibuya"
    assert len(records[0]["breaks"]) == 1

    assert client.get("/api/admin/attendance").status_code == 403
    assert client.post("/api/invites").status_code == 403

    client.delete("/api/session")
    login("admin@acme.example.com")
    report = client.get("/api/admin/attendance?mode=site&siteName=Shibuya").get_json()
    assert [row["userName"] for row in report["rows"]] == ["Taro"]
    assert client.get("/api/admin/sites").get_json()["sites"] == ["Shibuya"]
    assert [e["name"] for e in client.get("/api/admin/employees").get_json()["employees"]] == ["Taro"]


def test_invalid_invite_reason_is_returned(client):
    resp = client.get("/api/invites/validate?invite=nope")
    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "not_found"


def test_toggle_invite(client, admin):
    invite_id = client.post("/api/invites").get_json()["invite"]["id"]

    resp = client.post(f"/api/invites/{invite_id}/toggle")
    assert resp.get_json()["active"] is False

    code = client.get("/api/invites").get_json()["invites"][0]["code"]
    assert client.get(f"/api/invites/validate?invite={code}").get_json()["reason"] == "inactive"


def test_register_admin_creates_tenant(client):
    resp = client.post(
        "/api/register/admin",
        json={
            "email": "boss@newco.example.com",
            "password": "secret1",
            "displayName": "Boss",
            "companyName": "NewCo",
        },
    )
    assert resp.status_code == 201
    tenant_id = resp.get_json()["user"]["tenantId"]
    assert tenant_id.startswith("newco-")
    assert tenant_id in [t["id"] for t in client.get("/api/tenants").get_json()["tenants"]]


def test_deactivating_tenant_is_super_admin_only(client, admin, identity, seed_user, login):
    assert client.post("/api/tenants/acme/active", json={"active": False}).status_code == 403

    owner = identity.create_user(email="owner@example.com", password="secret1", display_name="Owner")
    seed_user(owner.uid, owner.email, role="super_admin")
    client.delete("/api/session")
    login(owner.email)

    resp = client.post("/api/tenants/acme/active", json={"active": False})
    assert resp.status_code == 200

    # The session's tenant is gone, so the next request asks for a new selection.
    resp = client.get("/api/attendance")
    assert resp.status_code == 400
    assert resp.get_json()["selectionRequired"] is True


def test_bearer_token_with_tenant_header(client, identity, seed_user):
    user = identity.create_user(email="taro@acme.example.com", password="secret1", display_name="Taro")
    seed_user(user.uid, user.email)
    token = identity.sign_in(user.email, "secret1")

    resp = client.get("/api/attendance", headers={"Authorization": f"Bearer {token}", "X-Tenant-ID": "acme"})
    assert resp.status_code == 200
    assert resp.get_json()["records"] == []


def test_disabled_account_token_is_rejected(client, identity, seed_user):
    user = identity.create_user(email="jiro@acme.example.com", password="secret1", display_name="Jiro")
    seed_user(user.uid, user.email)
    token = identity.sign_in(user.email, "secret1")
    identity.disable_user(user.uid)

    resp = client.get("/api/attendance", headers={"Authorization": f"Bearer {token}", "X-Tenant-ID": "acme"})
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "auth/user-disabled"


def test_unexpected_errors_become_500(app, client, admin, monkeypatch):
    container = app.extensions["tenant_attendance"]

    def boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(container.attendance_service, "list_for_user", boom)

    resp = client.get("/api/attendance")
    assert resp.status_code == 500
    assert resp.get_json()["message"] == "Internal server error"
    assert resp.get_json()["detail"] is None
