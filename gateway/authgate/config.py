"""
Configuration module for the Tenant Auth Gateway.

This module uses Pydantic Settings to load and validate environment variables
for the identity provider, the tenant directory, session cookies, redirects,
and CORS settings.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ENVIRONMENTS = ("development", "staging", "production", "test")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Everything the gateway needs to reach its upstreams and to shape the
    session cookie is defined here.
    """

    # =========================================================================
    # Identity Provider (GoTrue-compatible auth API)
    # =========================================================================

    IDENTITY_PROVIDER_URL: HttpUrl = Field(
        ...,
        description="Auth API base URL (e.g., https://project.supabase.co/auth/v1)",
    )

    IDENTITY_PROVIDER_API_KEY: str = Field(
        ...,
        description="Public API key sent as the 'apikey' header",
        min_length=1,
    )

    # =========================================================================
    # Tenant Directory (PostgREST-compatible table API)
    # =========================================================================

    TENANT_DIRECTORY_URL: HttpUrl = Field(
        ...,
        description="Table API base URL (e.g., https://project.supabase.co/rest/v1)",
    )

    TENANT_DIRECTORY_API_KEY: str = Field(
        ...,
        description="Service key with read/update access to the tenant table",
        min_length=1,
    )

    TENANT_TABLE: str = Field(
        default="tenants",
        description="Name of the table holding tenant records",
        min_length=1,
    )

    UPSTREAM_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout applied to every identity provider and tenant directory call",
        gt=0,
        le=60,
    )

    # =========================================================================
    # Redirects
    # =========================================================================

    ERROR_PAGE_URL: str = Field(
        ...,
        description="Where /confirm sends the browser when a recovery link cannot be used",
        min_length=1,
    )

    PASSWORD_RESET_REDIRECT_URL: Optional[str] = Field(
        None,
        description="Link target embedded in password reset emails (optional)",
    )

    # =========================================================================
    # Session Cookie
    # =========================================================================

    ENVIRONMENT: str = Field(
        default="development",
        description="Deployment environment (development, staging, production, test)",
    )

    COOKIE_SECURE: Optional[bool] = Field(
        None,
        description="Force the cookie 'secure' flag; derived from ENVIRONMENT when unset",
    )

    SESSION_COOKIE_NAME: str = Field(
        default="sb-access-token",
        description="Name of the session cookie",
        min_length=1,
    )

    # =========================================================================
    # Client-facing Messages
    # =========================================================================

    OPERATOR_NAME: str = Field(
        default="the property manager",
        description="Who unregistered tenants are told to contact",
    )

    PASSWORD_MIN_LENGTH: int = Field(
        default=6,
        description="Minimum password length enforced by the identity provider",
        ge=1,
    )

    # =========================================================================
    # Gateway Server Configuration
    # =========================================================================

    GATEWAY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the gateway server",
    )

    GATEWAY_PORT: int = Field(
        default=8080,
        description="Port to bind the gateway server",
        ge=1,
        le=65535,
    )

    TRUST_PROXY: bool = Field(
        default=False,
        description="Trust X-Forwarded-For for the client IP (set when running behind a proxy)",
    )

    ALLOWED_ORIGINS: Optional[str] = Field(
        None,
        description="Comma-separated list of allowed CORS origins (leave empty for no CORS)",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cookie_secure(self) -> bool:
        """
        Whether the session cookie carries the 'secure' attribute.

        COOKIE_SECURE wins when set; otherwise only production sends
        the cookie over HTTPS exclusively.
        """
        if self.COOKIE_SECURE is not None:
            return self.COOKIE_SECURE
        return self.is_production

    @property
    def identity_provider_url_str(self) -> str:
        return str(self.IDENTITY_PROVIDER_URL).rstrip("/")

    @property
    def tenant_directory_url_str(self) -> str:
        return str(self.TENANT_DIRECTORY_URL).rstrip("/")

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """
        Validate the deployment environment name.

        Raises:
            ValueError: If the environment is not a known name
        """
        v = v.strip().lower()
        if v not in ENVIRONMENTS:
            raise ValueError(
                f"ENVIRONMENT must be one of {list(ENVIRONMENTS)}, got: {v}"
            )
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid LOG_LEVEL: {v}")
        return v

    @field_validator("TENANT_TABLE")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        """
        Table names end up in request paths, so only plain identifiers pass.
        """
        import re

        if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", v):
            raise ValueError(
                f"Invalid TENANT_TABLE: '{v}'. "
                "Expected letters, digits and underscores only"
            )
        return v


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If required environment variables are missing
                        or invalid.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Validate deployment-sensitive settings and return a status report.

    Called during application startup; errors and warnings are logged.

    Returns:
        Dictionary with validation status and any warnings.

    Example:
        >>> status = validate_configuration(get_settings())
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    errors = []
    warnings = []

    if settings.is_production and not settings.cookie_secure:
        errors.append("COOKIE_SECURE is disabled in production")

    if settings.COOKIE_SECURE is False and settings.ENVIRONMENT == "staging":
        warnings.append("Session cookie is sent over plain HTTP in staging")

    if settings.is_production:
        for name in ("ERROR_PAGE_URL", "PASSWORD_RESET_REDIRECT_URL"):
            value = getattr(settings, name) or ""
            if "localhost" in value or "127.0.0.1" in value:
                warnings.append(f"{name} points to localhost in production")

    if not settings.PASSWORD_RESET_REDIRECT_URL:
        warnings.append(
            "PASSWORD_RESET_REDIRECT_URL is not set (reset emails use the provider's site URL)"
        )

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "environment": settings.ENVIRONMENT,
        "cookie_secure": settings.cookie_secure,
    }
