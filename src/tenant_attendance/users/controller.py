from __future__ import annotations

import logging

from flask import Flask, g, session

from ..container import Container
from ..core.exceptions import AuthenticationError, NotFoundError
from ..web import json_body, json_errors, login_required, ok
from .model import ResolvedIdentity
from .registration import RegistrationResult

logger = logging.getLogger(__name__)


def identity_to_dict(identity: ResolvedIdentity) -> dict:
    return {
        "uid": identity.uid,
        "email": identity.email,
        "displayName": identity.display_name,
        "role": identity.role,
        "tenantId": identity.tenant_id,
    }


def registration_to_dict(result: RegistrationResult) -> dict:
    return {"uid": result.uid, "email": result.email, "tenantId": result.tenant_id, "role": result.role}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/session", methods=["POST"], endpoint="session_create")
    @json_errors
    def session_create():
        data = json_body()
        tenant = container.tenant_service.require(data.get("tenant"))
        auth_user = container.identity.verify_id_token(data.get("id_token") or "")
        try:
            identity = container.role_resolver.resolve(uid=auth_user.uid, email=auth_user.email, tenant_id=tenant.tenant_id)
        except NotFoundError as e:
            raise AuthenticationError(str(e), code="auth/user-not-found") from e

        session.clear()
        session["uid"] = identity.uid
        session["email"] = identity.email
        session["tenant_id"] = tenant.tenant_id
        logger.info("Signed in %s to tenant %s as %s", identity.email, tenant.tenant_id, identity.role.value)
        return ok(user=identity_to_dict(identity), corrected=identity.corrected)

    @app.route("/api/session", methods=["GET"], endpoint="session_show")
    @json_errors
    @login_required
    def session_show():
        return ok(user=identity_to_dict(g.ctx.identity), tenantId=g.ctx.tenant_id)

    @app.route("/api/session", methods=["DELETE"], endpoint="session_delete")
    @json_errors
    def session_delete():
        session.clear()
        return ok(message="Signed out")

    @app.route("/api/register/employee", methods=["POST"], endpoint="register_employee")
    @json_errors
    def register_employee():
        data = json_body()
        result = container.registration_service.register_employee_with_invite(
            email=data.get("email", ""),
            password=data.get("password", ""),
            display_name=data.get("displayName", ""),
            invite_code=data.get("invite", ""),
        )
        return ok(201, message="Registration complete", user=registration_to_dict(result))

    @app.route("/api/register/admin", methods=["POST"], endpoint="register_admin")
    @json_errors
    def register_admin():
        data = json_body()
        result = container.registration_service.register_tenant_admin(
            email=data.get("email", ""),
            password=data.get("password", ""),
            display_name=data.get("displayName", ""),
            company_name=data.get("companyName", ""),
            department=data.get("department", ""),
            phone=data.get("phone", ""),
        )
        return ok(201, message="Administrator account created", user=registration_to_dict(result))
