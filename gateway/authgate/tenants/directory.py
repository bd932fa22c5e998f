"""
Tenant directory adapter.

Tenants are provisioned out of band; an email may only register once a
tenant row exists for it. The gateway reads that row and, after a
successful signup, writes the new provider user id back onto it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..models import TenantRecord

logger = logging.getLogger(__name__)


class TenantDirectoryError(Exception):
    """Raised when the tenant directory cannot be read or updated."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TenantDirectory(ABC):
    """Lookup and link operations over pre-provisioned tenant records."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[TenantRecord]:
        """Return the tenant registered under this email, or None."""

    @abstractmethod
    async def link_user(self, email: str, user_id: str) -> None:
        """Attach a provider user id to the tenant record for this email."""


class PostgrestTenantDirectory(TenantDirectory):
    """
    TenantDirectory backed by a PostgREST table API.

    Expects a table with at least `id` and `email` columns and a nullable
    `user_id` column.

    Args:
        client: AsyncClient whose base_url points at the REST root
                (e.g., https://project.supabase.co/rest/v1)
        api_key: Service key sent as both 'apikey' and bearer token
        table: Table name
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        table: str = "tenants",
        timeout: float = 10.0,
    ):
        self._client = client
        self._api_key = api_key
        self._table = table
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def find_by_email(self, email: str) -> Optional[TenantRecord]:
        response = await self._send(
            "GET",
            params={"email": f"eq.{email}", "select": "id,email,user_id", "limit": "1"},
        )
        rows = _decode_rows(response)
        if not rows:
            return None
        return _row_to_record(rows[0])

    async def link_user(self, email: str, user_id: str) -> None:
        response = await self._send(
            "PATCH",
            params={"email": f"eq.{email}"},
            json={"user_id": user_id},
            headers={"Prefer": "return=representation"},
        )
        if not _decode_rows(response):
            raise TenantDirectoryError(f"No tenant row matched for linking user {user_id}")

    async def _send(
        self,
        method: str,
        params: Dict[str, str],
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        request_headers = self._headers()
        if headers:
            request_headers.update(headers)

        try:
            response = await self._client.request(
                method,
                f"/{self._table}",
                params=params,
                json=json,
                headers=request_headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TenantDirectoryError("Tenant directory timeout") from e
        except httpx.HTTPStatusError as e:
            raise TenantDirectoryError(
                f"Tenant directory returned {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TenantDirectoryError(f"Tenant directory unreachable: {e}") from e

        return response


def _decode_rows(response: httpx.Response) -> List[Dict[str, Any]]:
    """
    Parse a PostgREST 2xx body as a list of row objects.

    An empty body (204) counts as no rows. Anything that is not a JSON
    array of objects is reported as a directory failure.
    """
    if response.status_code == 204 or not response.content:
        return []

    try:
        rows = response.json()
    except ValueError as e:
        raise TenantDirectoryError(
            "Tenant directory returned a non-JSON body",
            status_code=response.status_code,
        ) from e

    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise TenantDirectoryError(
            "Tenant directory returned an unexpected body shape",
            status_code=response.status_code,
        )
    return rows


def _row_to_record(row: Dict[str, Any]) -> TenantRecord:
    if row.get("email") is None or row.get("id") is None:
        raise TenantDirectoryError("Tenant row is missing 'id' or 'email'")

    user_id = row.get("user_id")
    return TenantRecord(
        email=row["email"],
        tenant_id=str(row["id"]),
        user_id=str(user_id) if user_id is not None else None,
    )
