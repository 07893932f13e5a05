from __future__ import annotations

import re

from ..core.constants import TENANT_ID_MAX_LENGTH
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_TENANT_ID_RE = re.compile(r"^[a-zA-Z0-9-]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_email(value: str, field_name: str = "Email") -> str:
    value = require_non_empty(value, field_name)
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"{field_name} is not a valid email address")
    return value


def require_tenant_id(value: str) -> str:
    value = require_non_empty(value, "Company ID")
    if not _TENANT_ID_RE.match(value):
        raise ValidationError("Company ID may only contain letters, digits and hyphens")
    return require_max_length(value, "Company ID", TENANT_ID_MAX_LENGTH)
