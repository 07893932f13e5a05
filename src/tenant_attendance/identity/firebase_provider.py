from __future__ import annotations

import logging

from firebase_admin import auth, exceptions as firebase_exceptions

from ..common.error_messages import describe_auth_error
from ..core.exceptions import AuthenticationError, ValidationError
from .model import AuthUser

logger = logging.getLogger(__name__)


def _fail(code: str) -> AuthenticationError:
    return AuthenticationError(describe_auth_error(code), code=code)


class FirebaseIdentityProvider:
    """IdentityProvider backed by Firebase Authentication (firebase-admin)."""

    def __init__(self, app=None):
        self._app = app

    def create_user(self, *, email: str, password: str, display_name: str) -> AuthUser:
        try:
            record = auth.create_user(email=email, password=password, display_name=display_name, app=self._app)
        except auth.EmailAlreadyExistsError:
            raise ValidationError(describe_auth_error("auth/email-already-in-use"))
        except ValueError as e:
            code = "auth/weak-password" if "password" in str(e).lower() else "auth/invalid-email"
            raise ValidationError(describe_auth_error(code))
        except firebase_exceptions.UnavailableError as e:
            logger.warning("Auth service unavailable during sign-up: %s", e)
            raise _fail("auth/network-request-failed")
        return AuthUser(uid=record.uid, email=record.email, display_name=record.display_name)

    def verify_id_token(self, id_token: str) -> AuthUser:
        if not id_token:
            raise _fail("auth/invalid-id-token")
        try:
            claims = auth.verify_id_token(id_token, app=self._app, check_revoked=True)
        except auth.ExpiredIdTokenError:
            raise _fail("auth/id-token-expired")
        except auth.RevokedIdTokenError:
            raise _fail("auth/id-token-revoked")
        except auth.UserDisabledError:
            raise _fail("auth/user-disabled")
        except (auth.InvalidIdTokenError, ValueError):
            raise _fail("auth/invalid-id-token")
        except auth.CertificateFetchError as e:
            logger.warning("Could not fetch token certificates: %s", e)
            raise _fail("auth/network-request-failed")

        return AuthUser(uid=claims["uid"], email=claims.get("email", ""), display_name=claims.get("name"))

    def delete_user(self, uid: str) -> None:
        try:
            auth.delete_user(uid, app=self._app)
        except auth.UserNotFoundError:
            logger.info("Auth user %s already gone", uid)
