"""
FastAPI dependencies for the auth router.

The lifespan handler builds the adapters and the lifecycle once and
parks them on app.state.app_state; these providers hand them to routes.
Tests swap them out through app.dependency_overrides.
"""

from fastapi import HTTPException, Request, status

from .lifecycle import AccountLifecycle
from .session import SessionIssuer


def _app_state(request: Request):
    app_state = getattr(request.app.state, "app_state", None)
    if app_state is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gateway not initialized",
        )
    return app_state


def get_lifecycle(request: Request) -> AccountLifecycle:
    lifecycle = _app_state(request).lifecycle
    if lifecycle is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auth lifecycle not available",
        )
    return lifecycle


def get_session_issuer(request: Request) -> SessionIssuer:
    issuer = _app_state(request).session_issuer
    if issuer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session issuer not available",
        )
    return issuer
