from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import ResolutionFailure


@dataclass(frozen=True)
class Tenant:
    """Domain entity: an isolated customer/company scope."""

    tenant_id: str
    company_name: str
    admin_email: str
    is_active: bool
    user_count: int = 0
    created_at: Optional[datetime] = None
    settings: dict = field(default_factory=dict)
    migrated: bool = False


@dataclass(frozen=True)
class TenantResolution:
    """Outcome of resolving a requested tenant id.

    Either ``tenant`` is set, or ``failure`` says why the caller has to fall
    back to tenant selection.
    """

    requested_id: Optional[str]
    tenant: Optional[Tenant] = None
    failure: Optional[ResolutionFailure] = None

    @property
    def resolved(self) -> bool:
        return self.tenant is not None
