"""
Shared fixtures for gateway tests.

Environment defaults are set before any authgate module is imported,
because authgate.main builds its module-level app from the environment.
"""

import os

os.environ.setdefault("IDENTITY_PROVIDER_URL", "http://auth.test/auth/v1")
os.environ.setdefault("IDENTITY_PROVIDER_API_KEY", "test-anon-key")
os.environ.setdefault("TENANT_DIRECTORY_URL", "http://db.test/rest/v1")
os.environ.setdefault("TENANT_DIRECTORY_API_KEY", "test-service-key")
os.environ.setdefault("ERROR_PAGE_URL", "http://app.test/error")
os.environ.setdefault("ENVIRONMENT", "test")

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from authgate.auth.dependencies import get_lifecycle, get_session_issuer
from authgate.auth.lifecycle import AccountLifecycle
from authgate.auth.session import SessionIssuer
from authgate.config import Settings
from authgate.main import create_app
from authgate.models import AuthResult, Session, TenantRecord
from authgate.providers.base import IdentityProvider
from authgate.tenants.directory import TenantDirectory

ERROR_PAGE = "http://app.test/error"
COOKIE_NAME = "sb-access-token"


@pytest.fixture
def mock_settings():
    """Settings for an isolated test deployment"""
    return Settings(
        IDENTITY_PROVIDER_URL="http://auth.test/auth/v1",
        IDENTITY_PROVIDER_API_KEY="test-anon-key",
        TENANT_DIRECTORY_URL="http://db.test/rest/v1",
        TENANT_DIRECTORY_API_KEY="test-service-key",
        ERROR_PAGE_URL=ERROR_PAGE,
        PASSWORD_RESET_REDIRECT_URL="http://app.test/update-password",
        ENVIRONMENT="test",
        OPERATOR_NAME="Acme Leasing",
    )


@pytest.fixture
def tenant():
    return TenantRecord(email="tenant@example.com", tenant_id="42")


@pytest.fixture
def session():
    return Session(access_token="access-token-123", expires_in=3600, refresh_token="refresh-123")


@pytest.fixture
def mock_provider(session):
    """Identity provider whose calls all succeed"""
    provider = AsyncMock(spec=IdentityProvider)
    provider.create_account.return_value = AuthResult(user_id="user-1", email="tenant@example.com")
    provider.authenticate.return_value = AuthResult(user_id="user-1", email="tenant@example.com", session=session)
    provider.send_password_reset.return_value = None
    provider.update_password.return_value = None
    provider.exchange_recovery_token.return_value = session
    provider.revoke_session.return_value = None
    return provider


@pytest.fixture
def mock_tenants(tenant):
    """Tenant directory that knows tenant@example.com"""
    tenants = AsyncMock(spec=TenantDirectory)
    tenants.find_by_email.return_value = tenant
    tenants.link_user.return_value = None
    return tenants


@pytest.fixture
def lifecycle(mock_provider, mock_tenants):
    return AccountLifecycle(
        provider=mock_provider,
        tenants=mock_tenants,
        error_page_url=ERROR_PAGE,
        password_reset_redirect_url="http://app.test/update-password",
        operator_name="Acme Leasing",
    )


@pytest.fixture
def issuer():
    return SessionIssuer(cookie_name=COOKIE_NAME, secure=False)


@pytest.fixture
def app(mock_settings, lifecycle, issuer):
    """Gateway app with upstreams replaced by mocks"""
    app = create_app(mock_settings)
    app.dependency_overrides[get_lifecycle] = lambda: lifecycle
    app.dependency_overrides[get_session_issuer] = lambda: issuer
    return app


@pytest.fixture
def client(app):
    return TestClient(app, follow_redirects=False)
