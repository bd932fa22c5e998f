"""
GoTrue Adapter Tests

Runs the adapter against httpx.MockTransport handlers that mimic the auth
server's responses, and checks request shape plus error classification.
"""

import json

import httpx
import pytest

from authgate.providers.base import IdentityProviderError, ProviderErrorKind
from authgate.providers.gotrue import GoTrueIdentityProvider

BASE_URL = "http://auth.test/auth/v1"

TOKEN_RESPONSE = {
    "access_token": "access-token-123",
    "token_type": "bearer",
    "expires_in": 3600,
    "refresh_token": "refresh-123",
    "user": {"id": "user-1", "email": "tenant@example.com"},
}


def make_provider(handler):
    """Build an adapter whose client is served by handler; requests are recorded."""
    seen = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(recording_handler))
    return GoTrueIdentityProvider(client, api_key="anon-key", timeout=5.0), seen


def json_response(status_code, body):
    return httpx.Response(status_code, json=body)


class TestCreateAccount:

    @pytest.mark.asyncio
    async def test_unconfirmed_signup_returns_bare_user(self):
        provider, seen = make_provider(lambda r: json_response(200, {"id": "user-1", "email": "tenant@example.com"}))

        result = await provider.create_account("tenant@example.com", "s3cret-pass")

        assert result.user_id == "user-1"
        assert result.session is None
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/auth/v1/signup"
        assert request.headers["apikey"] == "anon-key"
        assert json.loads(request.content) == {"email": "tenant@example.com", "password": "s3cret-pass"}

    @pytest.mark.asyncio
    async def test_autoconfirmed_signup_returns_session(self):
        provider, _ = make_provider(lambda r: json_response(200, TOKEN_RESPONSE))

        result = await provider.create_account("tenant@example.com", "s3cret-pass")

        assert result.user_id == "user-1"
        assert result.session.access_token == "access-token-123"

    @pytest.mark.asyncio
    async def test_weak_password(self):
        provider, _ = make_provider(lambda r: json_response(422, {
            "code": 422,
            "error_code": "weak_password",
            "msg": "Password should be at least 6 characters.",
        }))

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.create_account("tenant@example.com", "123")

        assert exc_info.value.kind == ProviderErrorKind.WEAK_PASSWORD
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_existing_user_is_rejected(self):
        provider, _ = make_provider(lambda r: json_response(422, {"error_code": "user_already_exists", "msg": "User already registered"}))

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.create_account("tenant@example.com", "s3cret-pass")

        assert exc_info.value.kind == ProviderErrorKind.REJECTED


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_password_grant(self):
        provider, seen = make_provider(lambda r: json_response(200, TOKEN_RESPONSE))

        result = await provider.authenticate("tenant@example.com", "s3cret-pass")

        assert result.session.expires_in == 3600
        assert result.session.refresh_token == "refresh-123"
        assert seen[0].url.path == "/auth/v1/token"
        assert seen[0].url.params["grant_type"] == "password"

    @pytest.mark.asyncio
    async def test_invalid_grant(self):
        provider, _ = make_provider(lambda r: json_response(400, {
            "error": "invalid_grant",
            "error_description": "Invalid login credentials",
        }))

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.authenticate("tenant@example.com", "wrong")

        assert exc_info.value.kind == ProviderErrorKind.INVALID_CREDENTIALS
        assert exc_info.value.message == "Invalid login credentials"

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        provider, _ = make_provider(lambda r: httpx.Response(503, text="upstream down"))

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.authenticate("tenant@example.com", "s3cret-pass")

        assert exc_info.value.kind == ProviderErrorKind.UNAVAILABLE
        assert exc_info.value.is_transient

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider, _ = make_provider(handler)

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.authenticate("tenant@example.com", "s3cret-pass")

        assert exc_info.value.kind == ProviderErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider, _ = make_provider(handler)

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.authenticate("tenant@example.com", "s3cret-pass")

        assert exc_info.value.kind == ProviderErrorKind.UNAVAILABLE


class TestRecovery:

    @pytest.mark.asyncio
    async def test_send_password_reset_with_redirect(self):
        provider, seen = make_provider(lambda r: json_response(200, {}))

        await provider.send_password_reset("anyone@example.com", redirect_to="http://app.test/update-password")

        assert seen[0].url.path == "/auth/v1/recover"
        assert seen[0].url.params["redirect_to"] == "http://app.test/update-password"
        assert json.loads(seen[0].content) == {"email": "anyone@example.com"}

    @pytest.mark.asyncio
    async def test_send_password_reset_without_redirect(self):
        provider, seen = make_provider(lambda r: json_response(200, {}))

        await provider.send_password_reset("anyone@example.com")

        assert "redirect_to" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_exchange_recovery_token(self):
        provider, seen = make_provider(lambda r: json_response(200, TOKEN_RESPONSE))

        session = await provider.exchange_recovery_token("recovery", "abc")

        assert session.access_token == "access-token-123"
        assert seen[0].url.path == "/auth/v1/verify"
        assert json.loads(seen[0].content) == {"type": "recovery", "token_hash": "abc"}

    @pytest.mark.asyncio
    async def test_used_recovery_token_is_rejected(self):
        provider, _ = make_provider(lambda r: json_response(403, {"error_code": "otp_expired", "msg": "Token has expired or is invalid"}))

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.exchange_recovery_token("recovery", "abc")

        assert exc_info.value.kind == ProviderErrorKind.REJECTED

    @pytest.mark.asyncio
    async def test_update_password_uses_user_token(self):
        provider, seen = make_provider(lambda r: json_response(200, {"id": "user-1"}))

        await provider.update_password("recovery-token", "n3w-pass")

        assert seen[0].method == "PUT"
        assert seen[0].url.path == "/auth/v1/user"
        assert seen[0].headers["Authorization"] == "Bearer recovery-token"
        assert json.loads(seen[0].content) == {"password": "n3w-pass"}


class TestRevokeSession:

    @pytest.mark.asyncio
    async def test_logout(self):
        provider, seen = make_provider(lambda r: httpx.Response(204))

        await provider.revoke_session("access-token-123")

        assert seen[0].url.path == "/auth/v1/logout"
        assert seen[0].headers["Authorization"] == "Bearer access-token-123"

    @pytest.mark.asyncio
    async def test_no_token_skips_upstream(self):
        provider, seen = make_provider(lambda r: httpx.Response(204))

        await provider.revoke_session(None)

        assert seen == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403, 404])
    async def test_already_revoked_session(self, status_code):
        provider, _ = make_provider(lambda r: json_response(status_code, {"msg": "session not found"}))

        await provider.revoke_session("access-token-123")

    @pytest.mark.asyncio
    async def test_upstream_failure(self):
        provider, _ = make_provider(lambda r: httpx.Response(500))

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.revoke_session("access-token-123")

        assert exc_info.value.kind == ProviderErrorKind.UNAVAILABLE
