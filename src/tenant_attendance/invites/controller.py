from __future__ import annotations

from flask import Flask, g, request

from ..container import Container
from ..core.constants import DEFAULT_INVITE_HISTORY_LIMIT
from ..core.exceptions import ValidationError
from ..web import admin_required, json_errors, ok
from .model import InviteCode


def invite_to_dict(invite: InviteCode) -> dict:
    return {
        "id": invite.invite_id,
        "code": invite.code,
        "tenantId": invite.tenant_id,
        "companyName": invite.company_name,
        "expiresAt": invite.expires_at,
        "maxUses": invite.max_uses,
        "used": invite.used,
        "active": invite.active,
        "createdByEmail": invite.created_by_email,
        "createdAt": invite.created_at,
        "lastUsedAt": invite.last_used_at,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/invites", methods=["POST"], endpoint="invites_create")
    @json_errors
    @admin_required
    def invites_create():
        generated = container.invite_service.generate(
            identity=g.ctx.identity,
            tenant_id=g.ctx.tenant_id,
            base_url=container.public_base_url or request.host_url,
        )
        return ok(201, invite=invite_to_dict(generated.invite), link=generated.link)

    @app.route("/api/invites", methods=["GET"], endpoint="invites_history")
    @json_errors
    @admin_required
    def invites_history():
        try:
            limit = int(request.args.get("limit", DEFAULT_INVITE_HISTORY_LIMIT))
        except ValueError:
            raise ValidationError("limit must be a number")
        rows = container.invite_service.history(identity=g.ctx.identity, tenant_id=g.ctx.tenant_id, limit=limit)
        return ok(invites=[{**invite_to_dict(r.invite), "status": r.status} for r in rows])

    @app.route("/api/invites/<invite_id>/toggle", methods=["POST"], endpoint="invites_toggle")
    @json_errors
    @admin_required
    def invites_toggle(invite_id: str):
        active = container.invite_service.toggle(identity=g.ctx.identity, tenant_id=g.ctx.tenant_id, invite_id=invite_id)
        return ok(id=invite_id, active=active)

    @app.route("/api/invites/validate", methods=["GET"], endpoint="invites_validate")
    @json_errors
    def invites_validate():
        invite = container.invite_service.validate(request.args.get("invite", ""))
        return ok(tenantId=invite.tenant_id, companyName=invite.company_name, expiresAt=invite.expires_at)
