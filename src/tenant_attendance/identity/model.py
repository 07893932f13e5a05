from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AuthUser:
    """An account as known by the hosted authentication service."""

    uid: str
    email: str
    display_name: Optional[str] = None
