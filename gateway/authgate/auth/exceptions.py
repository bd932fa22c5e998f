"""
Lifecycle errors.

Every failure an auth operation can end in. Each carries the HTTP status
and the client-safe message the router answers with; upstream detail
stays in the logs.
"""

from typing import Optional


class LifecycleError(Exception):
    """Base class for auth lifecycle failures."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnknownTenant(LifecycleError):
    status_code = 404
    default_message = "Unable to register account."


class WeakCredential(LifecycleError):
    status_code = 500
    default_message = "Password not strong enough."


class ProviderError(LifecycleError):
    """The identity provider or tenant directory failed for a non-user reason."""
    status_code = 500
    default_message = "Server error"


class InvalidCredentials(LifecycleError):
    status_code = 401
    default_message = "Invalid email or password. Please try again."


class SessionUnavailable(LifecycleError):
    status_code = 500
    default_message = "Failed to retrieve session."


class ResetRequestFailed(LifecycleError):
    status_code = 400
    default_message = "Unable to send password reset email."


class Unauthorized(LifecycleError):
    status_code = 400
    default_message = "Not authorized. Unable to reset password."


class SignOutFailed(LifecycleError):
    status_code = 401
    default_message = "Sign out error."


__all__ = [
    "LifecycleError",
    "UnknownTenant",
    "WeakCredential",
    "ProviderError",
    "InvalidCredentials",
    "SessionUnavailable",
    "ResetRequestFailed",
    "Unauthorized",
    "SignOutFailed",
]
