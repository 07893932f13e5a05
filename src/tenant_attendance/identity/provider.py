from __future__ import annotations

from typing import Protocol

from .model import AuthUser


class IdentityProvider(Protocol):
    """Hosted authentication API (sign-up, token verification, account removal)."""

    def create_user(self, *, email: str, password: str, display_name: str) -> AuthUser:
        raise NotImplementedError

    def verify_id_token(self, id_token: str) -> AuthUser:
        raise NotImplementedError

    def delete_user(self, uid: str) -> None:
        raise NotImplementedError
