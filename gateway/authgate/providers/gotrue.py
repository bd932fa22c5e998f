"""
GoTrue identity provider adapter.

Speaks the GoTrue REST API (the auth server behind Supabase Auth) over a
shared httpx.AsyncClient. Every upstream failure leaves this module as an
IdentityProviderError with a ProviderErrorKind; callers never see httpx
exceptions or raw response bodies.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..models import AuthResult, Session
from .base import IdentityProvider, IdentityProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)


# Upstream error codes that mean "the email/password pair is wrong"
INVALID_CREDENTIAL_CODES = {
    "invalid_credentials",
    "invalid_grant",
    "email_not_confirmed",
    "user_not_found",
}

WEAK_PASSWORD_CODES = {"weak_password"}

# Logout answers these when the session is already gone
ALREADY_SIGNED_OUT_STATUSES = {401, 403, 404}


class GoTrueIdentityProvider(IdentityProvider):
    """
    IdentityProvider backed by a GoTrue auth server.

    Args:
        client: AsyncClient whose base_url points at the auth API root
                (e.g., https://project.supabase.co/auth/v1)
        api_key: Public API key sent with every request
        timeout: Per-request timeout in seconds
    """

    def __init__(self, client: httpx.AsyncClient, api_key: str, timeout: float = 10.0):
        self._client = client
        self._api_key = api_key
        self._timeout = timeout

    # =========================================================================
    # Capabilities
    # =========================================================================

    async def create_account(self, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password},
        )
        return _parse_auth_result(data)

    async def authenticate(self, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return _parse_auth_result(data)

    async def send_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._request("POST", "/recover", params=params, json={"email": email})

    async def update_password(self, access_token: str, password: str) -> None:
        await self._request(
            "PUT",
            "/user",
            json={"password": password},
            access_token=access_token,
        )

    async def exchange_recovery_token(self, otp_type: str, token_hash: str) -> Optional[Session]:
        data = await self._request(
            "POST",
            "/verify",
            json={"type": otp_type, "token_hash": token_hash},
        )
        return _parse_session(data)

    async def revoke_session(self, access_token: Optional[str]) -> None:
        if not access_token:
            logger.debug("No session token presented; nothing to revoke")
            return

        try:
            await self._request("POST", "/logout", access_token=access_token)
        except IdentityProviderError as e:
            if e.status_code in ALREADY_SIGNED_OUT_STATUSES:
                logger.info(
                    "Session already revoked upstream",
                    extra={"status_code": e.status_code},
                )
                return
            raise

    # =========================================================================
    # Transport
    # =========================================================================

    def _headers(self, access_token: Optional[str]) -> Dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token or self._api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send one request to the auth server and return its JSON body.

        Raises:
            IdentityProviderError: On timeout, transport failure, or a
                non-2xx response
        """
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(access_token),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"Identity provider timeout on {method} {path}")
            raise IdentityProviderError(ProviderErrorKind.TIMEOUT, str(e)) from e
        except httpx.HTTPError as e:
            logger.warning(f"Identity provider unreachable on {method} {path}: {e}")
            raise IdentityProviderError(ProviderErrorKind.UNAVAILABLE, str(e)) from e

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise IdentityProviderError(
                    ProviderErrorKind.UNAVAILABLE,
                    "Identity provider returned a non-JSON body",
                    status_code=response.status_code,
                ) from e

        raise _classify_error(response)


# =============================================================================
# Response Parsing
# =============================================================================

def _error_body(response: httpx.Response) -> Dict[str, Any]:
    if not response.headers.get("content-type", "").startswith("application/json"):
        return {}
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _classify_error(response: httpx.Response) -> IdentityProviderError:
    """
    Map a non-2xx auth server response to an IdentityProviderError.

    GoTrue reports errors either as {"error_code", "msg"} or, on the
    OAuth-style token endpoint, as {"error", "error_description"}.
    """
    body = _error_body(response)
    code = body.get("error_code") or body.get("error")
    message = (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or f"HTTP {response.status_code}"
    )
    status_code = response.status_code

    if code in WEAK_PASSWORD_CODES:
        kind = ProviderErrorKind.WEAK_PASSWORD
    elif code in INVALID_CREDENTIAL_CODES:
        kind = ProviderErrorKind.INVALID_CREDENTIALS
    elif status_code >= 500:
        kind = ProviderErrorKind.UNAVAILABLE
    else:
        kind = ProviderErrorKind.REJECTED

    logger.info(
        f"Identity provider rejected request: {kind.value}",
        extra={"status_code": status_code, "error_code": code},
    )
    return IdentityProviderError(kind, str(message), status_code=status_code, code=code)


def _parse_session(data: Dict[str, Any]) -> Optional[Session]:
    if not data.get("access_token") or not data.get("expires_in"):
        return None
    return Session(
        access_token=data["access_token"],
        expires_in=int(data["expires_in"]),
        token_type=data.get("token_type") or "bearer",
        refresh_token=data.get("refresh_token"),
    )


def _parse_auth_result(data: Dict[str, Any]) -> AuthResult:
    """
    Build an AuthResult from a signup or token response.

    Signup answers with the bare user object when email confirmation is
    required, and with a session wrapping the user otherwise.
    """
    session = _parse_session(data)
    user = data.get("user") if isinstance(data.get("user"), dict) else None
    if user is None and session is None and data.get("id"):
        user = data
    user = user or {}

    return AuthResult(
        user_id=user.get("id"),
        email=user.get("email"),
        session=session,
    )
