from __future__ import annotations

from dataclasses import dataclass

from .tenants.model import Tenant
from .users.model import ResolvedIdentity


@dataclass(frozen=True)
class RequestContext:
    """Tenant and identity for one request, passed explicitly to services."""

    tenant: Tenant
    identity: ResolvedIdentity

    @property
    def tenant_id(self) -> str:
        return self.tenant.tenant_id

    @property
    def uid(self) -> str:
        return self.identity.uid
