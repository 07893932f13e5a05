from __future__ import annotations

from flask import Flask, g, request

from ..container import Container
from ..web import admin_required, fail, json_body, json_errors, ok
from .model import Tenant
from .service import suggest_tenant_id, tenant_url


def tenant_to_dict(tenant: Tenant) -> dict:
    return {
        "id": tenant.tenant_id,
        "companyName": tenant.company_name,
        "adminEmail": tenant.admin_email,
        "isActive": tenant.is_active,
        "userCount": tenant.user_count,
        "createdAt": tenant.created_at,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/tenants", methods=["GET"], endpoint="tenants_list")
    @json_errors
    def tenants_list():
        tenants = container.tenant_service.list_selectable()
        return ok(tenants=[tenant_to_dict(t) for t in tenants])

    @app.route("/api/tenants", methods=["POST"], endpoint="tenants_create")
    @json_errors
    def tenants_create():
        data = json_body()
        tenant = container.tenant_service.create_tenant(
            company_name=data.get("companyName", ""),
            tenant_id=data.get("tenantId", ""),
            admin_email=data.get("adminEmail", ""),
        )
        return ok(
            201,
            message="Company created",
            tenant=tenant_to_dict(tenant),
            url=tenant_url(container.public_base_url or request.host_url, tenant.tenant_id),
        )

    @app.route("/api/tenants/suggest-id", methods=["GET"], endpoint="tenants_suggest_id")
    @json_errors
    def tenants_suggest_id():
        return ok(tenantId=suggest_tenant_id(request.args.get("companyName", "")))

    @app.route("/api/tenants/resolve", methods=["GET"], endpoint="tenants_resolve")
    @json_errors
    def tenants_resolve():
        resolution = container.tenant_service.resolve(request.args.get("tenant"))
        if not resolution.resolved:
            return fail("Company selection required", 404, reason=resolution.failure, selectionRequired=True)
        return ok(tenant=tenant_to_dict(resolution.tenant))

    @app.route("/api/tenants/<tenant_id>/active", methods=["POST"], endpoint="tenants_set_active")
    @json_errors
    @admin_required
    def tenants_set_active(tenant_id: str):
        data = json_body()
        if "active" not in data:
            return fail("active is required", 400)
        container.tenant_service.set_active(identity=g.ctx.identity, tenant_id=tenant_id, is_active=bool(data["active"]))
        return ok(tenantId=tenant_id, active=bool(data["active"]))
