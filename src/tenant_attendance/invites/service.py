from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence
from urllib.parse import urlencode

from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty
from ..core.constants import (
    DEFAULT_INVITE_HISTORY_LIMIT,
    DEFAULT_INVITE_MAX_USES,
    DEFAULT_INVITE_VALID_DAYS,
    INVITE_TOKEN_ALPHABET,
    INVITE_TOKEN_LENGTH,
)
from ..core.enums import InviteStatus
from ..core.exceptions import InviteError, NotFoundError, ValidationError
from ..store.values import SERVER_TIMESTAMP
from ..tenants.repository import TenantRepository
from ..users.model import ResolvedIdentity
from ..users.permissions import require_tenant_admin
from .model import GeneratedInvite, InviteCode, InviteHistoryRow
from .repository import InviteRepository

logger = logging.getLogger(__name__)

_REJECTIONS = {
    InviteStatus.DISABLED: ("inactive", "This invite link has been disabled"),
    InviteStatus.EXPIRED: ("expired", "This invite link has expired"),
    InviteStatus.EXHAUSTED: ("exhausted", "This invite link has reached its usage limit"),
}


def generate_token(length: int = INVITE_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_TOKEN_ALPHABET) for _ in range(length))


def invite_link(base_url: str, code: str) -> str:
    return f"{base_url.rstrip('?')}?{urlencode({'invite': code})}"


def ensure_usable(invite: Optional[InviteCode], now: datetime) -> InviteCode:
    """Raise InviteError unless ``invite`` can be used at ``now``."""
    if invite is None:
        raise InviteError("Invalid invite link", reason="not_found")
    status = invite.status(now)
    if status in _REJECTIONS:
        reason, message = _REJECTIONS[status]
        raise InviteError(message, reason=reason)
    return invite


class InviteService:
    """Use case: issue, validate, consume and manage invite codes."""

    def __init__(
        self,
        invites: InviteRepository,
        tenants: TenantRepository,
        *,
        valid_days: int = DEFAULT_INVITE_VALID_DAYS,
        max_uses: int = DEFAULT_INVITE_MAX_USES,
        token_factory: Callable[[], str] = generate_token,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._invites = invites
        self._tenants = tenants
        self._valid_days = int(valid_days)
        self._max_uses = int(max_uses)
        self._token_factory = token_factory
        self._clock = clock

    def generate(self, *, identity: ResolvedIdentity, tenant_id: str, base_url: str) -> GeneratedInvite:
        require_tenant_admin(identity, tenant_id)

        tenant = self._tenants.get(tenant_id)
        if tenant is None:
            raise NotFoundError("Company information not found")

        now = self._clock()
        code = self._token_factory()
        invite_id = self._invites.create(
            {
                "code": code,
                "tenantId": tenant_id,
                "companyName": tenant.company_name,
                "createdBy": identity.uid,
                "createdByEmail": identity.email,
                "createdAt": SERVER_TIMESTAMP,
                "expiresAt": now + timedelta(days=self._valid_days),
                "maxUses": self._max_uses,
                "used": 0,
                "active": True,
                "lastUsedAt": None,
            }
        )
        logger.info("Invite %s issued for tenant %s by %s", invite_id, tenant_id, identity.email)

        invite = self._invites.get(invite_id)
        if invite is None:
            raise NotFoundError("Invite could not be read back after creation")
        return GeneratedInvite(invite=invite, link=invite_link(base_url, code))

    def validate(self, code: str, *, now: Optional[datetime] = None) -> InviteCode:
        try:
            code = require_non_empty(code, "Invite token")
        except ValidationError:
            raise InviteError("An invite link is required to register", reason="not_found")
        return ensure_usable(self._invites.find_by_code(code), now or self._clock())

    def consume(self, invite_id: str, *, now: Optional[datetime] = None) -> InviteCode:
        at = now or self._clock()
        invite = self._invites.consume(invite_id, check=lambda current: ensure_usable(current, at))
        logger.info("Invite %s used (%s/%s)", invite_id, invite.used, invite.max_uses)
        return invite

    def history(
        self, *, identity: ResolvedIdentity, tenant_id: str, limit: int = DEFAULT_INVITE_HISTORY_LIMIT
    ) -> Sequence[InviteHistoryRow]:
        require_tenant_admin(identity, tenant_id)
        now = self._clock()
        return [InviteHistoryRow(invite=i, status=i.status(now)) for i in self._invites.list_for_tenant(tenant_id, limit=limit)]

    def toggle(self, *, identity: ResolvedIdentity, tenant_id: str, invite_id: str) -> bool:
        require_tenant_admin(identity, tenant_id)
        invite = self._invites.get(invite_id)
        if invite is None or invite.tenant_id != tenant_id:
            raise NotFoundError("Invite not found")

        new_state = not invite.active
        self._invites.set_active(invite_id, active=new_state)
        logger.info("Invite %s active=%s (by %s)", invite_id, new_state, identity.email)
        return new_state
