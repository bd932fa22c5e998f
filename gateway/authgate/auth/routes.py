"""
Authentication routes for the account lifecycle.

Thin HTTP layer over AccountLifecycle: parse the request, call one
lifecycle operation, and turn its outcome into a status code, a JSON
message and (for sign-in and sign-out) a cookie change.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from ..models import (
    ForgotPasswordRequest,
    MessageResponse,
    RegisterRequest,
    SignInRequest,
    UpdatePasswordRequest,
)
from .dependencies import get_lifecycle, get_session_issuer
from .exceptions import LifecycleError
from .lifecycle import AccountLifecycle
from .session import SessionIssuer, get_request_token

logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    tags=["authentication"],
)

SERVER_ERROR_MESSAGE = "Server error"


def _message(message: str, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _lifecycle_error(e: LifecycleError) -> JSONResponse:
    return _message(e.message, e.status_code)


def _server_error(operation: str, e: Exception) -> JSONResponse:
    logger.error(
        f"Unexpected error in {operation}: {e}",
        exc_info=True,
        extra={"operation": operation, "exception_type": type(e).__name__},
    )
    return _message(SERVER_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


# =============================================================================
# Registration
# =============================================================================

@auth_router.post("/register", response_model=MessageResponse)
async def register(
    body: RegisterRequest,
    lifecycle: AccountLifecycle = Depends(get_lifecycle),
):
    """
    Register an account for an email that already has a tenant record.

    The provider mails a confirmation link; no session is issued here.
    """
    try:
        await lifecycle.register(body.email, body.password)
    except LifecycleError as e:
        return _lifecycle_error(e)
    except Exception as e:
        return _server_error("register", e)

    return _message("Account registered.")


# =============================================================================
# Password Reset
# =============================================================================

@auth_router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    lifecycle: AccountLifecycle = Depends(get_lifecycle),
):
    try:
        await lifecycle.request_password_reset(body.email)
    except LifecycleError as e:
        return _lifecycle_error(e)
    except Exception as e:
        return _server_error("forgot_password", e)

    return _message("Password reset email sent.")


@auth_router.get("/confirm", response_class=RedirectResponse)
async def confirm(
    token_hash: Optional[str] = Query(None, description="Hashed one-time token from the email link"),
    otp_type: Optional[str] = Query(None, alias="type", description="Token type; only 'recovery' is accepted"),
    next_url: Optional[str] = Query(None, alias="next", description="Where to send the user after a successful exchange"),
    lifecycle: AccountLifecycle = Depends(get_lifecycle),
):
    """
    Landing endpoint of the password reset email.

    Always answers 303: to `next` when the recovery token was redeemed,
    to the configured error page otherwise.
    """
    try:
        decision = await lifecycle.confirm_recovery(token_hash, otp_type, next_url)
    except Exception as e:
        logger.error(f"Unexpected error in confirm: {e}", exc_info=True)
        return RedirectResponse(url=lifecycle.error_page_url, status_code=status.HTTP_303_SEE_OTHER)

    return RedirectResponse(url=decision.location, status_code=decision.status_code)


@auth_router.post("/update-password", response_model=MessageResponse)
async def update_password(
    request: Request,
    body: UpdatePasswordRequest,
    lifecycle: AccountLifecycle = Depends(get_lifecycle),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    """
    Complete a password reset.

    The recovery session travels as a bearer token or as the session cookie.
    """
    recovery_token = get_request_token(request, issuer.cookie_name)
    try:
        await lifecycle.complete_password_reset(recovery_token, body.password)
    except LifecycleError as e:
        return _lifecycle_error(e)
    except Exception as e:
        return _server_error("update_password", e)

    return _message("Password reset successfully.")


# =============================================================================
# Sign In / Sign Out
# =============================================================================

# Note: users must click the link in their confirmation email before they can sign in
@auth_router.post("/signin", response_model=MessageResponse)
async def signin(
    body: SignInRequest,
    lifecycle: AccountLifecycle = Depends(get_lifecycle),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    try:
        result = await lifecycle.sign_in(body.email, body.password)
        response = _message("Signed in successfully")
        issuer.issue(response, result)
    except LifecycleError as e:
        return _lifecycle_error(e)
    except Exception as e:
        return _server_error("signin", e)

    return response


@auth_router.post("/signout", response_model=MessageResponse)
async def signout(
    request: Request,
    lifecycle: AccountLifecycle = Depends(get_lifecycle),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    access_token = get_request_token(request, issuer.cookie_name)
    try:
        await lifecycle.sign_out(access_token)
    except LifecycleError as e:
        return _lifecycle_error(e)
    except Exception as e:
        return _server_error("signout", e)

    response = _message("Signed out successfully")
    issuer.clear(response)
    return response
