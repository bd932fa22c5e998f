"""
FastAPI Gateway Application Factory
====================================

This is the main entry point for the auth gateway that sits between the
tenant-facing client application and the identity provider.

Architecture:
    Client App → Gateway (this service) → Identity Provider + Tenant Directory

Routers:
    - /register, /signin, /signout           : Account and session lifecycle
    - /forgot-password, /confirm, /update-password : Password reset flow
    - /health                                 : Health check endpoint

Environment Variables Required:
    - IDENTITY_PROVIDER_URL: Auth API base URL (e.g., "https://project.supabase.co/auth/v1")
    - IDENTITY_PROVIDER_API_KEY: Public API key for the auth API
    - TENANT_DIRECTORY_URL: Table API base URL (e.g., "https://project.supabase.co/rest/v1")
    - TENANT_DIRECTORY_API_KEY: Service key for the tenant table
    - ERROR_PAGE_URL: Redirect target for unusable recovery links
    - ENVIRONMENT: development | staging | production | test (default: development)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn authgate.main:app --reload --host 0.0.0.0 --port 8080

    Production:
        uvicorn authgate.main:app --host 0.0.0.0 --port 8080 --workers 4
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth.lifecycle import AccountLifecycle
from .auth.routes import auth_router
from .auth.session import SessionIssuer
from .config import Settings, get_settings, validate_configuration
from .middleware import ClientIPMiddleware
from .models import HealthResponse
from .providers.base import IdentityProvider
from .providers.gotrue import GoTrueIdentityProvider
from .tenants.directory import PostgrestTenantDirectory, TenantDirectory

SERVICE_NAME = "authgate"
SERVICE_VERSION = "1.0.0"


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Application state container
class AppState:
    """
    Per-application state container.

    Holds the shared HTTP clients, the adapters built on them, and the
    lifecycle and session issuer that routes depend on.
    """
    def __init__(self):
        self.settings: Optional[Settings] = None
        self.provider_client: Optional[httpx.AsyncClient] = None
        self.tenant_client: Optional[httpx.AsyncClient] = None
        self.provider: Optional[IdentityProvider] = None
        self.tenants: Optional[TenantDirectory] = None
        self.lifecycle: Optional[AccountLifecycle] = None
        self.session_issuer: Optional[SessionIssuer] = None


def build_lifecycle(
    settings: Settings,
    provider: IdentityProvider,
    tenants: TenantDirectory,
) -> AccountLifecycle:
    return AccountLifecycle(
        provider=provider,
        tenants=tenants,
        error_page_url=settings.ERROR_PAGE_URL,
        password_reset_redirect_url=settings.PASSWORD_RESET_REDIRECT_URL,
        operator_name=settings.OPERATOR_NAME,
        password_min_length=settings.PASSWORD_MIN_LENGTH,
    )


async def startup(app_state: AppState, settings: Settings) -> None:
    """
    Open upstream clients and wire the lifecycle.

    Startup tasks:
        - Validate deployment-sensitive configuration
        - Create one httpx.AsyncClient per upstream
        - Build the identity provider and tenant directory adapters
        - Build the lifecycle orchestrator and session issuer
    """
    logger = logging.getLogger("authgate.main")
    app_state.settings = settings

    status = validate_configuration(settings)
    for warning in status["warnings"]:
        logger.warning(f"Configuration warning: {warning}")
    for error in status["errors"]:
        logger.error(f"Configuration error: {error}")

    timeout = httpx.Timeout(settings.UPSTREAM_TIMEOUT_SECONDS)
    app_state.provider_client = httpx.AsyncClient(
        base_url=settings.identity_provider_url_str,
        timeout=timeout,
    )
    app_state.tenant_client = httpx.AsyncClient(
        base_url=settings.tenant_directory_url_str,
        timeout=timeout,
    )

    app_state.provider = GoTrueIdentityProvider(
        client=app_state.provider_client,
        api_key=settings.IDENTITY_PROVIDER_API_KEY,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
    app_state.tenants = PostgrestTenantDirectory(
        client=app_state.tenant_client,
        api_key=settings.TENANT_DIRECTORY_API_KEY,
        table=settings.TENANT_TABLE,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
    app_state.lifecycle = build_lifecycle(settings, app_state.provider, app_state.tenants)
    app_state.session_issuer = SessionIssuer.from_settings(settings)

    logger.info(
        "Gateway service started successfully",
        extra={
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": settings.ENVIRONMENT,
            "cookie_secure": settings.cookie_secure,
        }
    )


async def shutdown(app_state: AppState) -> None:
    """Close upstream clients and drop the wiring."""
    logger = logging.getLogger("authgate.main")
    logger.info("Shutting down gateway service")

    for client in (app_state.provider_client, app_state.tenant_client):
        if client is not None:
            await client.aclose()

    app_state.provider_client = None
    app_state.tenant_client = None
    app_state.provider = None
    app_state.tenants = None
    app_state.lifecycle = None
    app_state.session_issuer = None

    logger.info("Gateway service shutdown complete")


# Create FastAPI application
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - CORS middleware
        - Client IP middleware
        - Route handlers
        - Exception handlers

    Args:
        settings: Settings to use; loaded from the environment when omitted

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    app_state = AppState()
    app_state.settings = settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL)
        await startup(app_state, settings)
        yield
        await shutdown(app_state)

    app = FastAPI(
        title="Tenant Auth Gateway",
        description="Tenant-gated account lifecycle and session cookie gateway",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.app_state = app_state

    # Configure CORS; credentials are required for the session cookie
    origins = settings.allowed_origins_list
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    app.add_middleware(ClientIPMiddleware, trust_proxy=settings.TRUST_PROXY)

    app.include_router(auth_router)

    # Health check endpoint
    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """
        Health check endpoint.

        Returns service status and whether the upstream wiring is in place.
        """
        return HealthResponse(
            status="ok",
            service=SERVICE_NAME,
            version=SERVICE_VERSION,
            dependencies={
                "lifecycle": "ready" if app_state.lifecycle is not None else "not_initialized",
            },
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and answers with the generic server error message.
        """
        logger = logging.getLogger("authgate.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={"message": "Server error"}
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "authgate.main:app",
        host=settings.GATEWAY_HOST,
        port=settings.GATEWAY_PORT,
        reload=not settings.is_production,
        log_level=settings.LOG_LEVEL.lower()
    )
