"""User-facing text for error codes reported by the auth/database provider."""

from __future__ import annotations

AUTH_ERROR_MESSAGES = {
    "auth/user-not-found": "No account exists for this email address",
    "auth/wrong-password": "Incorrect password",
    "auth/invalid-email": "The email address is not valid",
    "auth/user-disabled": "This account has been disabled",
    "auth/too-many-requests": "Too many attempts. Please wait and try again",
    "auth/network-request-failed": "Network error. Check your connection",
    "auth/email-already-in-use": "This email address is already registered",
    "auth/weak-password": "The password is too weak",
    "auth/invalid-id-token": "Your session is invalid. Please sign in again",
    "auth/id-token-expired": "Your session has expired. Please sign in again",
    "auth/id-token-revoked": "Your session was revoked. Please sign in again",
    "permission-denied": "You do not have permission to access this data",
    "unavailable": "The database is temporarily unavailable",
}


def describe_auth_error(code: str | None, *, fallback: str = "Authentication failed") -> str:
    if not code:
        return fallback
    return AUTH_ERROR_MESSAGES.get(code, fallback)
