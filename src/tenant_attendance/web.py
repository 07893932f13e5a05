"""Helpers shared by the JSON controllers.

Each request rebuilds its :class:`RequestContext` from the session (or a
bearer token) so tenant deactivation and role changes apply immediately.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, Optional

from flask import current_app, g, jsonify, request, session

from .context import RequestContext
from .core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    InviteError,
    NotFoundError,
    TenantResolutionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EXTENSION_KEY = "tenant_attendance"
TENANT_HEADER = "X-Tenant-ID"


def get_container():
    return current_app.extensions[EXTENSION_KEY]


def to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def ok(status: int = 200, **payload):
    return jsonify({"success": True, **to_json(payload)}), status


def fail(message: str, status: int, **extra):
    return jsonify({"success": False, "message": message, **to_json(extra)}), status


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def json_errors(view):
    """Turn domain exceptions raised by ``view`` into JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except InviteError as e:
            return fail(str(e), 400, reason=e.reason)
        except TenantResolutionError as e:
            return fail(str(e), 400, reason=e.reason, selectionRequired=True)
        except ValidationError as e:
            return fail(str(e), 400)
        except AuthenticationError as e:
            return fail(str(e), 401, code=e.code)
        except AuthorizationError as e:
            return fail(str(e), 403)
        except NotFoundError as e:
            return fail(str(e), 404)
        except DomainError as e:
            return fail(str(e), 400)
        except Exception as e:
            logger.exception("Unhandled error in %s", request.endpoint)
            detail = str(e) if current_app.config.get("DEBUG") else None
            return fail("Internal server error", 500, detail=detail)

    return wrapper


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def build_context() -> RequestContext:
    container = get_container()

    token = _bearer_token()
    if token:
        auth_user = container.identity.verify_id_token(token)
        uid, email = auth_user.uid, auth_user.email
        tenant_id = request.headers.get(TENANT_HEADER) or request.args.get("tenant")
    else:
        if "uid" not in session:
            raise AuthenticationError("Please sign in to continue")
        uid, email = session["uid"], session.get("email", "")
        tenant_id = session.get("tenant_id")

    tenant = container.tenant_service.require(tenant_id)
    identity = container.role_resolver.resolve(uid=uid, email=email, tenant_id=tenant.tenant_id)
    return RequestContext(tenant=tenant, identity=identity)


def login_required(view):
    """Resolve the request context into ``g.ctx`` before running ``view``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        g.ctx = build_context()
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.ctx = build_context()
        if not g.ctx.identity.is_admin:
            raise AuthorizationError("Administrator permission required")
        return view(*args, **kwargs)

    return wrapper
