"""
Account lifecycle orchestration.

Sequences the tenant directory and the identity provider into the
user-facing auth operations:

    register -> (provider confirmation email) -> sign_in -> sign_out
    request_password_reset -> confirm_recovery -> complete_password_reset

Each operation either returns its success outcome or raises exactly one
LifecycleError. Upstream exceptions never leave this module untranslated.
"""

import logging
from enum import Enum
from typing import Optional

from ..providers.base import IdentityProvider, IdentityProviderError, ProviderErrorKind
from ..tenants.directory import TenantDirectory, TenantDirectoryError
from .exceptions import (
    InvalidCredentials,
    ProviderError,
    ResetRequestFailed,
    SessionUnavailable,
    SignOutFailed,
    Unauthorized,
    UnknownTenant,
    WeakCredential,
)
from .recovery import RedirectDecision, decide_redirect, is_recovery_request
from .session import Authenticated

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    REGISTERED = "registered"
    RESET_EMAIL_SENT = "reset_email_sent"
    PASSWORD_UPDATED = "password_updated"
    SIGNED_OUT = "signed_out"


class AccountLifecycle:
    """
    Auth lifecycle operations for one gateway deployment.

    Holds no per-request state; a single instance serves all requests.

    Args:
        provider: Identity provider capability
        tenants: Tenant directory
        error_page_url: Redirect target for unusable recovery links
        password_reset_redirect_url: Link target put in reset emails
        operator_name: Who unregistered tenants are told to contact
        password_min_length: Quoted in the weak-password message
    """

    def __init__(
        self,
        provider: IdentityProvider,
        tenants: TenantDirectory,
        error_page_url: str,
        password_reset_redirect_url: Optional[str] = None,
        operator_name: str = "the property manager",
        password_min_length: int = 6,
    ):
        self.provider = provider
        self.tenants = tenants
        self.error_page_url = error_page_url
        self.password_reset_redirect_url = password_reset_redirect_url
        self.operator_name = operator_name
        self.password_min_length = password_min_length

    # =========================================================================
    # Registration
    # =========================================================================

    async def register(self, email: str, password: str) -> Outcome:
        """
        Create an account for a pre-provisioned tenant.

        Raises:
            UnknownTenant: No tenant record exists for the email
            WeakCredential: The provider refused the password
            ProviderError: Anything else went wrong upstream
        """
        try:
            tenant = await self.tenants.find_by_email(email)
        except TenantDirectoryError as e:
            logger.error(f"Tenant lookup failed: {e}", extra={"status_code": e.status_code})
            raise ProviderError() from e

        if tenant is None:
            raise UnknownTenant(
                f"Unable to register account. Contact {self.operator_name}."
            )

        try:
            result = await self.provider.create_account(email, password)
        except IdentityProviderError as e:
            if e.kind == ProviderErrorKind.WEAK_PASSWORD:
                raise WeakCredential(
                    "Password not strong enough. "
                    f"Must be at least {self.password_min_length} characters."
                ) from e
            logger.warning(
                f"Account creation failed: {e.kind.value}",
                extra={"status_code": e.status_code, "error_code": e.code},
            )
            raise ProviderError("Error signing up") from e

        if result.user_id:
            await self._link_tenant(email, result.user_id, tenant.tenant_id)

        return Outcome.REGISTERED

    async def _link_tenant(self, email: str, user_id: str, tenant_id: str) -> None:
        # The account already exists upstream at this point; a failed link
        # leaves it unattached to its tenant until an operator relinks it.
        try:
            await self.tenants.link_user(email, user_id)
        except TenantDirectoryError as e:
            logger.error(
                f"Failed to link user to tenant: {e}",
                extra={"email": email, "user_id": user_id, "tenant_id": tenant_id},
            )
        except Exception:
            logger.exception(
                "Unexpected error linking user to tenant",
                extra={"email": email, "user_id": user_id, "tenant_id": tenant_id},
            )

    # =========================================================================
    # Password Reset
    # =========================================================================

    async def request_password_reset(self, email: str) -> Outcome:
        # No tenant check, so the answer does not reveal which emails exist
        try:
            await self.provider.send_password_reset(
                email, redirect_to=self.password_reset_redirect_url
            )
        except IdentityProviderError as e:
            logger.warning(f"Password reset request failed: {e.kind.value}")
            raise ResetRequestFailed() from e

        return Outcome.RESET_EMAIL_SENT

    async def confirm_recovery(
        self,
        token_hash: Optional[str],
        otp_type: Optional[str],
        next_url: Optional[str],
    ) -> RedirectDecision:
        """
        Redeem a recovery link and decide where the browser goes.

        Single use of the token is enforced by the provider.
        """
        exchanged = False
        if is_recovery_request(token_hash, otp_type):
            try:
                await self.provider.exchange_recovery_token(otp_type, token_hash)
                exchanged = True
            except IdentityProviderError as e:
                logger.info(f"Recovery token exchange failed: {e.kind.value}")

        return decide_redirect(
            token_hash=token_hash,
            otp_type=otp_type,
            next_url=next_url,
            exchange_succeeded=exchanged,
            error_page_url=self.error_page_url,
        )

    async def complete_password_reset(
        self, recovery_token: Optional[str], new_password: str
    ) -> Outcome:
        """
        Set a new password using the recovery session on the request.

        Raises:
            Unauthorized: No recovery context, or the provider refused it
        """
        if not recovery_token:
            raise Unauthorized()

        try:
            await self.provider.update_password(recovery_token, new_password)
        except IdentityProviderError as e:
            logger.warning(
                f"Password update refused: {e.kind.value}",
                extra={"status_code": e.status_code},
            )
            raise Unauthorized() from e

        return Outcome.PASSWORD_UPDATED

    # =========================================================================
    # Sessions
    # =========================================================================

    async def sign_in(self, email: str, password: str) -> Authenticated:
        """
        Verify credentials and hand the session to the cookie issuer.

        Raises:
            InvalidCredentials: The provider refused the credentials
            ProviderError: The provider timed out or was unreachable
            SessionUnavailable: Authentication succeeded without a session
        """
        try:
            result = await self.provider.authenticate(email, password)
        except IdentityProviderError as e:
            if e.is_transient:
                logger.error(f"Sign-in unavailable: {e.kind.value}")
                raise ProviderError() from e
            raise InvalidCredentials() from e

        if result.session is None:
            logger.warning("Provider authenticated user without a session", extra={"user_id": result.user_id})
            raise SessionUnavailable()

        return Authenticated(session=result.session)

    async def sign_out(self, access_token: Optional[str]) -> Outcome:
        try:
            await self.provider.revoke_session(access_token)
        except IdentityProviderError as e:
            logger.warning(f"Sign-out failed: {e.kind.value}", extra={"status_code": e.status_code})
            raise SignOutFailed() from e

        return Outcome.SIGNED_OUT
