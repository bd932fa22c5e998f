"""
Authentication Package

This package owns the account lifecycle of the gateway: tenant-gated
registration, password sign-in, sign-out, and the password reset flow.

Key responsibilities:
- Sequencing tenant directory and identity provider calls
- Translating upstream failures into client-safe errors
- Issuing and clearing the HTTP-only session cookie
- Deciding where recovery links redirect

Modules:
- routes: Public auth endpoints (/register, /signin, /confirm, etc.)
- lifecycle: AccountLifecycle orchestrator
- session: Session cookie issuer and request token extraction
- recovery: Redirect decisions for recovery links
- exceptions: LifecycleError taxonomy
- dependencies: FastAPI dependency providers

The password reset flow:
1. Client posts the email to /forgot-password
2. Provider mails a recovery link pointing at /confirm
3. /confirm redeems the token and redirects to the reset page
4. Client posts the new password to /update-password with the recovery session
"""

from .routes import auth_router

__all__ = [
    "auth_router",
]
