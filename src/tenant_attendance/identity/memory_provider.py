from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.error_messages import describe_auth_error
from ..common.validators import require_email
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.exceptions import AuthenticationError, ValidationError
from .model import AuthUser


@dataclass
class _Account:
    user: AuthUser
    password_hash: str
    disabled: bool = False


class InMemoryIdentityProvider:
    """Local stand-in for the hosted auth service (tests and development).

    ``sign_in`` plays the role of the client SDK: it checks the password and
    hands out an id token that ``verify_id_token`` later accepts.
    """

    def __init__(self):
        self._accounts: dict[str, _Account] = {}
        self._tokens: dict[str, str] = {}

    def create_user(self, *, email: str, password: str, display_name: str) -> AuthUser:
        try:
            email = require_email(email)
        except ValidationError:
            raise ValidationError(describe_auth_error("auth/invalid-email"))
        if password is None or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(describe_auth_error("auth/weak-password"))
        if self._find(email):
            raise ValidationError(describe_auth_error("auth/email-already-in-use"))

        user = AuthUser(uid=uuid.uuid4().hex[:28], email=email, display_name=display_name)
        self._accounts[user.uid] = _Account(user=user, password_hash=generate_password_hash(password))
        return user

    def sign_in(self, email: str, password: str) -> str:
        account = self._find(email)
        if not account:
            raise AuthenticationError(describe_auth_error("auth/user-not-found"), code="auth/user-not-found")
        if account.disabled:
            raise AuthenticationError(describe_auth_error("auth/user-disabled"), code="auth/user-disabled")
        if not check_password_hash(account.password_hash, password):
            raise AuthenticationError(describe_auth_error("auth/wrong-password"), code="auth/wrong-password")
        token = secrets.token_urlsafe(24)
        self._tokens[token] = account.user.uid
        return token

    def verify_id_token(self, id_token: str) -> AuthUser:
        uid = self._tokens.get(id_token or "")
        account = self._accounts.get(uid) if uid else None
        if not account:
            raise AuthenticationError(describe_auth_error("auth/invalid-id-token"), code="auth/invalid-id-token")
        if account.disabled:
            raise AuthenticationError(describe_auth_error("auth/user-disabled"), code="auth/user-disabled")
        return account.user

    def delete_user(self, uid: str) -> None:
        self._accounts.pop(uid, None)
        self._tokens = {t: u for t, u in self._tokens.items() if u != uid}

    def disable_user(self, uid: str) -> None:
        self._accounts[uid].disabled = True

    def get_user(self, uid: str) -> Optional[AuthUser]:
        account = self._accounts.get(uid)
        return account.user if account else None

    def _find(self, email: str) -> Optional[_Account]:
        email = (email or "").strip().lower()
        for account in self._accounts.values():
            if account.user.email.lower() == email:
                return account
        return None
