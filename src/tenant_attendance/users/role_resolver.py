from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.enums import Role, UserSource
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import ResolvedIdentity, UserProfile
from .repository import UserRepository

logger = logging.getLogger(__name__)


class RoleResolver:
    """Use case: determine a signed-in user's effective role.

    Lookup order is tenant user -> global user -> legacy user. Addresses in
    ``super_admin_emails`` always resolve to super_admin; a stored role that
    disagrees is corrected in place.
    """

    def __init__(self, users: UserRepository, *, super_admin_emails: Iterable[str] = ()):
        self._users = users
        self._super_admins = {e.strip().lower() for e in super_admin_emails if e and e.strip()}

    def is_super_admin_email(self, email: str) -> bool:
        return (email or "").strip().lower() in self._super_admins

    def resolve(self, *, uid: str, email: str, tenant_id: Optional[str]) -> ResolvedIdentity:
        tenant_profile = self._users.get_tenant_user(tenant_id, uid) if tenant_id else None
        global_profile = self._users.get_global_user(uid)
        profile = tenant_profile or global_profile or self._users.get_legacy_user(uid)
        if profile is None:
            raise NotFoundError("User record not found. Please contact your administrator")

        role = profile.role
        corrected = False
        if self.is_super_admin_email(email) and role != Role.SUPER_ADMIN:
            self._correct(profile, global_profile)
            role = Role.SUPER_ADMIN
            corrected = True

        if role != Role.SUPER_ADMIN:
            self._check_membership(profile, global_profile, tenant_id)

        return ResolvedIdentity(
            uid=uid,
            email=email or profile.email,
            display_name=profile.display_name,
            role=role,
            tenant_id=tenant_id or profile.tenant_id,
            source=profile.source,
            corrected=corrected,
        )

    def _correct(self, profile: UserProfile, global_profile: Optional[UserProfile]) -> None:
        logger.warning("Promoting %s to super_admin (stored role was %s)", profile.email, profile.role.value)
        self._users.set_role(profile, Role.SUPER_ADMIN)
        if global_profile is not None and profile.source != UserSource.GLOBAL:
            self._users.set_role(global_profile, Role.SUPER_ADMIN)

    @staticmethod
    def _check_membership(
        profile: UserProfile, global_profile: Optional[UserProfile], tenant_id: Optional[str]
    ) -> None:
        if not profile.is_active:
            raise AuthorizationError("This account has been disabled")
        if not tenant_id:
            return

        home = global_profile.tenant_id if global_profile else None
        if profile.source == UserSource.TENANT:
            if home and home != tenant_id:
                raise AuthorizationError("This account belongs to a different company")
            return

        if profile.tenant_id != tenant_id:
            raise AuthorizationError("This account is not registered with this company")
