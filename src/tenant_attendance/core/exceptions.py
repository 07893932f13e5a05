from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when credentials or identity tokens are invalid."""

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.code = code


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced document does not exist."""


class TenantResolutionError(DomainError):
    """Raised when a request needs a tenant but none could be resolved."""

    def __init__(self, message: str, *, reason):
        super().__init__(message)
        self.reason = reason


class InviteError(ValidationError):
    """Raised when an invite code cannot be used.

    ``reason`` is one of: not_found, inactive, expired, exhausted.
    """

    def __init__(self, message: str, *, reason: str):
        super().__init__(message)
        self.reason = reason
