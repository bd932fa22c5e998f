"""
Tenant Directory Tests

Runs the PostgREST adapter against httpx.MockTransport handlers.
"""

import json

import httpx
import pytest

from authgate.tenants.directory import PostgrestTenantDirectory, TenantDirectoryError

BASE_URL = "http://db.test/rest/v1"


def make_directory(handler, table="tenants"):
    seen = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(recording_handler))
    return PostgrestTenantDirectory(client, api_key="service-key", table=table), seen


@pytest.mark.asyncio
async def test_find_by_email_returns_record():
    directory, seen = make_directory(
        lambda r: httpx.Response(200, json=[{"id": 42, "email": "tenant@example.com", "user_id": None}])
    )

    record = await directory.find_by_email("tenant@example.com")

    assert record.tenant_id == "42"
    assert record.email == "tenant@example.com"
    assert record.user_id is None

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/tenants"
    assert request.url.params["email"] == "eq.tenant@example.com"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["Authorization"] == "Bearer service-key"


@pytest.mark.asyncio
async def test_find_by_email_unknown():
    directory, _ = make_directory(lambda r: httpx.Response(200, json=[]))

    assert await directory.find_by_email("stranger@example.com") is None


@pytest.mark.asyncio
async def test_find_by_email_uses_configured_table():
    directory, seen = make_directory(lambda r: httpx.Response(200, json=[]), table="leaseholders")

    await directory.find_by_email("tenant@example.com")

    assert seen[0].url.path == "/rest/v1/leaseholders"


@pytest.mark.asyncio
async def test_link_user_patches_row():
    directory, seen = make_directory(
        lambda r: httpx.Response(200, json=[{"id": 42, "email": "tenant@example.com", "user_id": "user-1"}])
    )

    await directory.link_user("tenant@example.com", "user-1")

    request = seen[0]
    assert request.method == "PATCH"
    assert request.url.params["email"] == "eq.tenant@example.com"
    assert request.headers["Prefer"] == "return=representation"
    assert json.loads(request.content) == {"user_id": "user-1"}


@pytest.mark.asyncio
async def test_link_user_without_matching_row_fails():
    directory, _ = make_directory(lambda r: httpx.Response(200, json=[]))

    with pytest.raises(TenantDirectoryError):
        await directory.link_user("gone@example.com", "user-1")


@pytest.mark.asyncio
async def test_http_error_is_wrapped():
    directory, _ = make_directory(lambda r: httpx.Response(500, json={"message": "boom"}))

    with pytest.raises(TenantDirectoryError) as exc_info:
        await directory.find_by_email("tenant@example.com")

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_timeout_is_wrapped():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    directory, _ = make_directory(handler)

    with pytest.raises(TenantDirectoryError):
        await directory.find_by_email("tenant@example.com")


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(200, text="<html>gateway</html>"),
    httpx.Response(200, json={"id": 42, "email": "tenant@example.com"}),
    httpx.Response(200, json=["tenant@example.com"]),
    httpx.Response(200, json=[{"email": "tenant@example.com"}]),
    httpx.Response(200, json=[{"id": 42}]),
])
async def test_malformed_lookup_body_is_wrapped(response):
    directory, _ = make_directory(lambda r: response)

    with pytest.raises(TenantDirectoryError):
        await directory.find_by_email("tenant@example.com")


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(204),
    httpx.Response(200, text="ok"),
])
async def test_unusable_link_body_is_wrapped(response):
    directory, _ = make_directory(lambda r: response)

    with pytest.raises(TenantDirectoryError):
        await directory.link_user("tenant@example.com", "user-1")
