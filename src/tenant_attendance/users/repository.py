from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from ..store.base import WriteBatch
from .model import UserProfile


class UserRepository(Protocol):
    """Access to the three overlapping user stores.

    ``tenants/{tenantId}/users`` is authoritative; ``global_users`` maps a uid
    to its home tenant; legacy ``users`` is read only as a last resort.
    """

    def get_tenant_user(self, tenant_id: str, uid: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def get_global_user(self, uid: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def get_legacy_user(self, uid: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def set_role(self, profile: UserProfile, role: Role) -> None:
        """Persist ``role`` to the store ``profile`` was read from."""

        raise NotImplementedError

    def list_tenant_users(self, tenant_id: str, *, role: Optional[Role] = None) -> Sequence[UserProfile]:
        raise NotImplementedError

    def add_site_history(self, tenant_id: str, uid: str, site_name: str) -> None:
        raise NotImplementedError

    def stage_tenant_user(self, batch: WriteBatch, tenant_id: str, uid: str, data: dict) -> None:
        raise NotImplementedError

    def stage_global_user(self, batch: WriteBatch, uid: str, data: dict) -> None:
        raise NotImplementedError
