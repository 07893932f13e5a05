from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import as_aware
from ..core.enums import InviteStatus


@dataclass(frozen=True)
class InviteCode:
    """Domain entity: a usage-capped, time-limited signup token."""

    invite_id: str
    code: str
    tenant_id: str
    company_name: str
    expires_at: Optional[datetime]
    max_uses: Optional[int]
    used: int
    active: bool
    created_by: Optional[str] = None
    created_by_email: Optional[str] = None
    created_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None

    def status(self, now: datetime) -> InviteStatus:
        if not self.active:
            return InviteStatus.DISABLED
        if self.expires_at is not None and as_aware(self.expires_at) < as_aware(now):
            return InviteStatus.EXPIRED
        if self.max_uses and self.used >= self.max_uses:
            return InviteStatus.EXHAUSTED
        return InviteStatus.ACTIVE


@dataclass(frozen=True)
class GeneratedInvite:
    invite: InviteCode
    link: str


@dataclass(frozen=True)
class InviteHistoryRow:
    invite: InviteCode
    status: InviteStatus
