from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role, UserSource


@dataclass(frozen=True)
class UserProfile:
    """Domain entity: a user record as stored in one of the user stores."""

    uid: str
    email: str
    display_name: str
    role: Role
    tenant_id: Optional[str]
    source: UserSource
    is_active: bool = True
    site_history: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedIdentity:
    """Who is acting, in which tenant, with which effective role."""

    uid: str
    email: str
    display_name: str
    role: Role
    tenant_id: Optional[str]
    source: UserSource
    corrected: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin
