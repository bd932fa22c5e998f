"""
Identity provider capability interface.

The lifecycle orchestrator talks to the identity provider only through
this interface, so any backend that can create accounts, verify
credentials, mail reset links, exchange one-time tokens and revoke
sessions can be plugged in.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from ..models import AuthResult, Session


class ProviderErrorKind(str, Enum):
    """Classification attached to every identity provider failure."""

    WEAK_PASSWORD = "weak_password"
    INVALID_CREDENTIALS = "invalid_credentials"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"


class IdentityProviderError(Exception):
    """
    Raised by identity provider adapters.

    Attributes:
        kind: Failure classification used for error translation
        message: Upstream description (for logs only, never for clients)
        status_code: Upstream HTTP status, when there was one
        code: Upstream error code, when there was one
    """

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str = "",
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.code = code

    @property
    def is_transient(self) -> bool:
        return self.kind in (ProviderErrorKind.TIMEOUT, ProviderErrorKind.UNAVAILABLE)


class IdentityProvider(ABC):
    """Capabilities the gateway needs from an identity provider."""

    @abstractmethod
    async def create_account(self, email: str, password: str) -> AuthResult:
        """Create an account; the provider sends its own confirmation email."""

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> AuthResult:
        """Verify a password. The result carries a session unless the account is unconfirmed."""

    @abstractmethod
    async def send_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Mail a one-time recovery link to the address."""

    @abstractmethod
    async def update_password(self, access_token: str, password: str) -> None:
        """Set a new password for the account behind the access token."""

    @abstractmethod
    async def exchange_recovery_token(self, otp_type: str, token_hash: str) -> Optional[Session]:
        """Redeem a one-time token. The provider invalidates it after one use."""

    @abstractmethod
    async def revoke_session(self, access_token: Optional[str]) -> None:
        """Sign the session out upstream. No token means there is nothing to revoke."""
