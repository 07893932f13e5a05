from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    EMPLOYEE = "employee"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def is_admin(self) -> bool:
        return self in (Role.ADMIN, Role.SUPER_ADMIN)


class InviteStatus(str, Enum):
    """Derived state of an invite code at a given moment."""

    ACTIVE = "active"
    DISABLED = "disabled"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


class ResolutionFailure(str, Enum):
    """Why a tenant could not be resolved and selection is required."""

    MISSING_ID = "missing_id"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"


class ReportMode(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    EMPLOYEE = "employee"
    SITE = "site"


class UserSource(str, Enum):
    """Which of the overlapping user stores a profile was read from."""

    TENANT = "tenant"
    GLOBAL = "global"
    LEGACY = "legacy"
