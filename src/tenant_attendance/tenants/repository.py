from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..store.base import WriteBatch
from .model import Tenant


class TenantRepository(Protocol):
    def get(self, tenant_id: str) -> Optional[Tenant]:
        raise NotImplementedError

    def list_active(self) -> Sequence[Tenant]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Tenant]:
        raise NotImplementedError

    def create(self, *, tenant_id: str, company_name: str, admin_email: str, settings: dict) -> None:
        """Create the tenant; ValidationError if the id is taken."""

        raise NotImplementedError

    def set_active(self, tenant_id: str, *, is_active: bool) -> None:
        raise NotImplementedError

    def stage_create(self, batch: WriteBatch, *, tenant_id: str, data: dict) -> None:
        raise NotImplementedError

    def stage_user_count(self, batch: WriteBatch, tenant_id: str, *, delta: int) -> None:
        raise NotImplementedError
