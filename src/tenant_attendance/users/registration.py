from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from ..common.datetime_utils import now_utc
from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import DEFAULT_TENANT_SETTINGS, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..identity.model import AuthUser
from ..identity.provider import IdentityProvider
from ..invites.service import InviteService
from ..store.base import WriteBatch
from ..store.paths import ADMIN_REQUESTS, doc_path
from ..store.values import SERVER_TIMESTAMP
from ..tenants.repository import TenantRepository
from ..tenants.service import generate_tenant_id
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    uid: str
    email: str
    tenant_id: str
    role: Role


class RegistrationService:
    """Use case: sign up employees (by invite) and company administrators."""

    def __init__(
        self,
        identity: IdentityProvider,
        users: UserRepository,
        tenants: TenantRepository,
        invites: InviteService,
        *,
        batch_factory: Callable[[], WriteBatch],
        clock: Callable[[], datetime] = now_utc,
    ):
        self._identity = identity
        self._users = users
        self._tenants = tenants
        self._invites = invites
        self._batch_factory = batch_factory
        self._clock = clock

    def register_employee_with_invite(
        self, *, email: str, password: str, display_name: str, invite_code: str
    ) -> RegistrationResult:
        email = require_email(email)
        display_name = require_non_empty(display_name, "Display name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        invite = self._invites.validate(invite_code)
        tenant = self._tenants.get(invite.tenant_id)
        if tenant is None or not tenant.is_active:
            raise ValidationError("The company for this invite is not available")

        auth_user = self._identity.create_user(email=email, password=password, display_name=display_name)
        try:
            self._invites.consume(invite.invite_id)

            batch = self._batch_factory()
            self._users.stage_tenant_user(
                batch,
                tenant.tenant_id,
                auth_user.uid,
                {
                    "email": email,
                    "displayName": display_name,
                    "role": Role.EMPLOYEE.value,
                    "tenantId": tenant.tenant_id,
                    "inviteToken": invite.code,
                    "isActive": True,
                    "createdAt": SERVER_TIMESTAMP,
                    "updatedAt": SERVER_TIMESTAMP,
                    "siteHistory": [],
                },
            )
            self._users.stage_global_user(
                batch,
                auth_user.uid,
                {
                    "uid": auth_user.uid,
                    "email": email,
                    "displayName": display_name,
                    "tenantId": tenant.tenant_id,
                    "role": Role.EMPLOYEE.value,
                    "createdAt": SERVER_TIMESTAMP,
                },
            )
            self._tenants.stage_user_count(batch, tenant.tenant_id, delta=1)
            batch.commit()
        except Exception:
            self._rollback(auth_user)
            raise

        logger.info("Registered employee %s in tenant %s", email, tenant.tenant_id)
        return RegistrationResult(uid=auth_user.uid, email=email, tenant_id=tenant.tenant_id, role=Role.EMPLOYEE)

    def register_tenant_admin(
        self,
        *,
        email: str,
        password: str,
        display_name: str,
        company_name: str,
        department: str = "",
        phone: str = "",
    ) -> RegistrationResult:
        email = require_email(email)
        display_name = require_non_empty(display_name, "Display name")
        company_name = require_non_empty(company_name, "Company name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        department = (department or "").strip()
        phone = (phone or "").strip()

        auth_user = self._identity.create_user(email=email, password=password, display_name=display_name)
        tenant_id = generate_tenant_id(company_name, now=self._clock())
        try:
            batch = self._batch_factory()
            self._tenants.stage_create(
                batch,
                tenant_id=tenant_id,
                data={
                    "companyName": company_name,
                    "adminEmail": email,
                    "adminName": display_name,
                    "isActive": True,
                    "userCount": 1,
                    "createdAt": SERVER_TIMESTAMP,
                    "updatedAt": SERVER_TIMESTAMP,
                    "settings": dict(DEFAULT_TENANT_SETTINGS),
                },
            )
            self._users.stage_global_user(
                batch,
                auth_user.uid,
                {
                    "uid": auth_user.uid,
                    "email": email,
                    "displayName": display_name,
                    "tenantId": tenant_id,
                    "role": Role.ADMIN.value,
                    "createdAt": SERVER_TIMESTAMP,
                    "updatedAt": SERVER_TIMESTAMP,
                },
            )
            self._users.stage_tenant_user(
                batch,
                tenant_id,
                auth_user.uid,
                {
                    "email": email,
                    "displayName": display_name,
                    "department": department,
                    "phone": phone,
                    "role": Role.ADMIN.value,
                    "tenantId": tenant_id,
                    "isActive": True,
                    "createdAt": SERVER_TIMESTAMP,
                    "updatedAt": SERVER_TIMESTAMP,
                    "siteHistory": [],
                },
            )
            batch.set(
                doc_path(ADMIN_REQUESTS, uuid.uuid4().hex[:20]),
                {
                    "requesterEmail": email,
                    "requesterName": display_name,
                    "companyName": company_name,
                    "department": department,
                    "phone": phone,
                    "tenantId": tenant_id,
                    "userId": auth_user.uid,
                    "status": "approved",
                    "requestedAt": SERVER_TIMESTAMP,
                    "approvedAt": SERVER_TIMESTAMP,
                    "requestedBy": "self-registration",
                },
            )
            batch.commit()
        except Exception:
            self._rollback(auth_user)
            raise

        logger.info("Registered admin %s for new tenant %s (%s)", email, tenant_id, company_name)
        return RegistrationResult(uid=auth_user.uid, email=email, tenant_id=tenant_id, role=Role.ADMIN)

    def _rollback(self, auth_user: AuthUser) -> None:
        logger.exception("Registration of %s failed; removing auth account %s", auth_user.email, auth_user.uid)
        self._identity.delete_user(auth_user.uid)
