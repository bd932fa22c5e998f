"""
Identity Provider Package

The capability interface the lifecycle orchestrator depends on, plus the
GoTrue (Supabase Auth) backend that ships with the gateway.

Modules:
- base: IdentityProvider ABC and the classified IdentityProviderError
- gotrue: httpx client for the GoTrue REST API
"""

from .base import IdentityProvider, IdentityProviderError, ProviderErrorKind
from .gotrue import GoTrueIdentityProvider

__all__ = [
    "IdentityProvider",
    "IdentityProviderError",
    "ProviderErrorKind",
    "GoTrueIdentityProvider",
]
