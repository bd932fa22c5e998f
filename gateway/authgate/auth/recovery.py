"""
Recovery link redirect decisions.

The /confirm endpoint is the landing page of a password reset email. It
never writes a cookie; all it decides is where the browser goes next.
"""

from dataclasses import dataclass
from typing import Optional

RECOVERY_OTP_TYPE = "recovery"

# 303 makes the browser follow up with GET whatever the original method was
REDIRECT_STATUS = 303


@dataclass(frozen=True)
class RedirectDecision:
    location: str
    is_error: bool
    status_code: int = REDIRECT_STATUS


def is_recovery_request(token_hash: Optional[str], otp_type: Optional[str]) -> bool:
    """
    Only recovery links are redeemed here.

    Signup, invite and magic-link tokens are structurally identical but
    are refused.
    """
    return bool(token_hash) and otp_type == RECOVERY_OTP_TYPE


def decide_redirect(
    token_hash: Optional[str],
    otp_type: Optional[str],
    next_url: Optional[str],
    exchange_succeeded: bool,
    error_page_url: str,
) -> RedirectDecision:
    if is_recovery_request(token_hash, otp_type) and exchange_succeeded and next_url:
        return RedirectDecision(location=next_url, is_error=False)
    return RedirectDecision(location=error_page_url, is_error=True)
