"""
Session Cookie Module
=====================

Turns an authenticated provider session into the browser session cookie,
clears it on sign-out, and reads the session token back from inbound
requests.

Cookie contract:
- value is the provider access token, never anything derived from it
- httponly, samesite=strict, path=/
- secure follows configuration (on in production unless overridden)
- lifetime matches the provider session (expires_in seconds)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Response

from ..config import Settings
from ..models import Session

logger = logging.getLogger(__name__)


# =============================================================================
# Cookie Model
# =============================================================================

@dataclass(frozen=True)
class SessionCookie:
    """
    Attributes of the session cookie.

    max_age_ms is the lifetime in milliseconds, as browser-side clients
    consume it; Set-Cookie itself carries whole seconds.
    """

    name: str
    value: str
    max_age_ms: int
    secure: bool
    httponly: bool = True
    samesite: str = "strict"
    path: str = "/"

    @property
    def max_age_seconds(self) -> int:
        return self.max_age_ms // 1000


@dataclass(frozen=True)
class Authenticated:
    """Successful sign-in; the only outcome a cookie is ever issued for."""

    session: Session


# =============================================================================
# Session Issuer
# =============================================================================

class SessionIssuer:
    """
    Writes and clears the session cookie.

    Args:
        cookie_name: Name of the session cookie
        secure: Whether the cookie is restricted to HTTPS
    """

    def __init__(self, cookie_name: str, secure: bool):
        self.cookie_name = cookie_name
        self.secure = secure

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionIssuer":
        return cls(cookie_name=settings.SESSION_COOKIE_NAME, secure=settings.cookie_secure)

    def build_cookie(self, result: Authenticated) -> SessionCookie:
        """
        Derive cookie attributes from an authenticated session.

        Raises:
            TypeError: If called with anything but an Authenticated result
        """
        if not isinstance(result, Authenticated):
            raise TypeError(f"Session cookies are only issued for Authenticated, got {type(result).__name__}")

        session = result.session
        return SessionCookie(
            name=self.cookie_name,
            value=session.access_token,
            # access tokens default to 3600s upstream, i.e. one hour
            max_age_ms=session.expires_in * 1000,
            secure=self.secure,
        )

    def issue(self, response: Response, result: Authenticated) -> SessionCookie:
        cookie = self.build_cookie(result)
        response.set_cookie(
            key=cookie.name,
            value=cookie.value,
            max_age=cookie.max_age_seconds,
            path=cookie.path,
            secure=cookie.secure,
            httponly=cookie.httponly,
            samesite=cookie.samesite,
        )
        logger.debug(
            "Issued session cookie",
            extra={"cookie": cookie.name, "max_age_ms": cookie.max_age_ms, "secure": cookie.secure},
        )
        return cookie

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="strict",
        )


# =============================================================================
# Token Extraction
# =============================================================================

def extract_token_from_header(authorization: Optional[str]) -> Optional[str]:
    """
    Extract Bearer token from Authorization header.

    Args:
        authorization: Authorization header value

    Returns:
        Token string, or None if the header is missing or not a bearer header
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def get_request_token(request: Request, cookie_name: str) -> Optional[str]:
    """
    Session token carried by a request.

    An explicit Authorization header wins over the session cookie, which
    lets clients holding a recovery session complete a reset without a
    cookie.
    """
    token = extract_token_from_header(request.headers.get("Authorization"))
    if token:
        return token
    return request.cookies.get(cookie_name) or None


__all__ = [
    "SessionCookie",
    "Authenticated",
    "SessionIssuer",
    "extract_token_from_header",
    "get_request_token",
]
