from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional, Sequence
from urllib.parse import urlencode

from ..common.datetime_utils import now_utc, to_base36
from ..common.validators import require_email, require_max_length, require_non_empty, require_tenant_id
from ..core.constants import COMPANY_NAME_MAX_LENGTH, DEFAULT_TENANT_SETTINGS, TENANT_ID_SUGGESTION_LENGTH
from ..core.enums import ResolutionFailure, Role
from ..core.exceptions import AuthorizationError, NotFoundError, TenantResolutionError
from ..users.model import ResolvedIdentity
from .model import Tenant, TenantResolution
from .repository import TenantRepository

logger = logging.getLogger(__name__)

_FAILURE_MESSAGES = {
    ResolutionFailure.MISSING_ID: "Please select a company",
    ResolutionFailure.NOT_FOUND: "The requested company does not exist",
    ResolutionFailure.INACTIVE: "The requested company has been deactivated",
}


def suggest_tenant_id(company_name: str) -> str:
    """Company ID suggested while the company name is typed in."""
    value = (company_name or "").lower()
    value = re.sub(r"[^a-z0-9\s]", "", value)
    value = re.sub(r"\s+", "-", value)
    return value[:TENANT_ID_SUGGESTION_LENGTH]


def generate_tenant_id(company_name: str, *, now: Optional[datetime] = None) -> str:
    """Unique tenant id: company slug plus a base36 millisecond timestamp."""
    now = now or now_utc()
    base = re.sub(r"[^a-z0-9]", "-", (company_name or "").lower())
    base = re.sub(r"-+", "-", base).strip("-") or "tenant"
    return f"{base}-{to_base36(int(now.timestamp() * 1000))}"


def tenant_url(base_url: str, tenant_id: str) -> str:
    return f"{base_url.rstrip('?')}?{urlencode({'tenant': tenant_id})}"


class TenantService:
    """Use case: resolve, list and register tenants."""

    def __init__(self, tenants: TenantRepository):
        self._tenants = tenants

    def resolve(self, tenant_id: Optional[str]) -> TenantResolution:
        tenant_id = (tenant_id or "").strip() or None
        if not tenant_id:
            return TenantResolution(requested_id=None, failure=ResolutionFailure.MISSING_ID)

        tenant = self._tenants.get(tenant_id)
        if tenant is None:
            logger.info("Tenant %s not found; selection required", tenant_id)
            return TenantResolution(requested_id=tenant_id, failure=ResolutionFailure.NOT_FOUND)
        if not tenant.is_active:
            logger.info("Tenant %s is inactive; selection required", tenant_id)
            return TenantResolution(requested_id=tenant_id, failure=ResolutionFailure.INACTIVE)
        return TenantResolution(requested_id=tenant_id, tenant=tenant)

    def require(self, tenant_id: Optional[str]) -> Tenant:
        resolution = self.resolve(tenant_id)
        if not resolution.resolved:
            raise TenantResolutionError(_FAILURE_MESSAGES[resolution.failure], reason=resolution.failure)
        return resolution.tenant

    def list_selectable(self) -> Sequence[Tenant]:
        return self._tenants.list_active()

    def create_tenant(self, *, company_name: str, tenant_id: str, admin_email: str) -> Tenant:
        company_name = require_max_length(
            require_non_empty(company_name, "Company name"), "Company name", COMPANY_NAME_MAX_LENGTH
        )
        tenant_id = require_tenant_id(tenant_id)
        admin_email = require_email(admin_email, "Admin email")

        self._tenants.create(
            tenant_id=tenant_id,
            company_name=company_name,
            admin_email=admin_email,
            settings=DEFAULT_TENANT_SETTINGS,
        )
        logger.info("Created tenant %s (%s)", tenant_id, company_name)

        tenant = self._tenants.get(tenant_id)
        if tenant is None:
            raise NotFoundError("Company could not be read back after creation")
        return tenant

    def set_active(self, *, identity: ResolvedIdentity, tenant_id: str, is_active: bool) -> None:
        if identity.role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only the system administrator can change company status")
        if self._tenants.get(tenant_id) is None:
            raise NotFoundError("Company not found")
        self._tenants.set_active(tenant_id, is_active=is_active)
        logger.info("Tenant %s active=%s (by %s)", tenant_id, is_active, identity.email)
