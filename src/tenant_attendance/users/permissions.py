from __future__ import annotations

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .model import ResolvedIdentity


def require_tenant_member(identity: ResolvedIdentity, tenant_id: str) -> None:
    if identity.role == Role.SUPER_ADMIN:
        return
    if identity.tenant_id != tenant_id:
        raise AuthorizationError("You do not belong to this company")


def require_tenant_admin(identity: ResolvedIdentity, tenant_id: str) -> None:
    if not identity.is_admin:
        raise AuthorizationError("Administrator permission required")
    require_tenant_member(identity, tenant_id)
