"""
Hosted Backend REST Client
==========================
Async access to the project's PostgREST tables and RPC functions.

Environment Variables:
- SUPABASE_URL: Project base URL (e.g., https://abc123.supabase.co)
- SUPABASE_SERVICE_ROLE_KEY: Service key sent as apikey and bearer token
- BACKEND_TIMEOUT_SECONDS: Per-request timeout (default 10)

Usage:
    from glaucoma_risk.backend import BackendClient

    client = BackendClient()
    rows = await client.select("questions", filters={"is_active": "eq.true"})
"""

import os
import json
import logging
from typing import Dict, Any, Optional, List, Sequence, Tuple, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "10"))

OrderSpec = Sequence[Tuple[str, bool]]


class BackendError(Exception):
    """Base exception for backend REST/RPC errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class BackendAuthError(BackendError):
    """Authentication/authorization error (401/403)."""
    pass


class BackendNotFoundError(BackendError):
    """Table, row or function not found (404)."""
    pass


class BackendValidationError(BackendError):
    """Request rejected by the backend (400/409/422)."""
    pass


def build_order(order: Optional[OrderSpec]) -> Optional[str]:
    """
    Build a PostgREST order clause.

    [("page_category", True), ("display_order", True)] -> "page_category.asc,display_order.asc"
    """
    if not order:
        return None
    return ",".join(f"{column}.{'asc' if ascending else 'desc'}" for column, ascending in order)


def in_filter(values: Sequence[str]) -> str:
    """Build an `in.(...)` filter value."""
    quoted = ",".join(f'"{v}"' for v in values)
    return f"in.({quoted})"


class BackendClient:
    """
    PostgREST/RPC client for the hosted backend.

    Features:
    - Structured error handling mapped from HTTP status
    - Request logging
    - Injectable transport (tests use httpx.MockTransport)

    No retries: callers decide how to surface failures.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize backend client.

        Args:
            base_url: Project base URL (defaults to env var)
            api_key: Service key (defaults to env var)
            timeout: Request timeout in seconds
            transport: Optional httpx transport override
        """
        self.base_url = (base_url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
        self.timeout = timeout
        self._transport = transport

        if not self.base_url:
            logger.warning("SUPABASE_URL not configured")
        if not self.api_key:
            logger.warning("SUPABASE_SERVICE_ROLE_KEY not configured")

    @property
    def is_configured(self) -> bool:
        """Check if client has required configuration."""
        return bool(self.base_url and self.api_key)

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"

    def _get_headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        """Build request headers."""
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _handle_response(self, response: httpx.Response) -> Any:
        """Handle response and raise appropriate exceptions."""
        if 200 <= response.status_code < 300:
            if response.content:
                return response.json()
            return None

        try:
            error_body = response.json() if response.content else {}
        except json.JSONDecodeError:
            error_body = {"raw": response.text}

        if isinstance(error_body, dict):
            error_msg = error_body.get("message") or error_body.get("error") or str(error_body)
        else:
            error_msg = str(error_body)

        if response.status_code in (401, 403):
            raise BackendAuthError(
                f"Backend rejected credentials: {error_msg}",
                status_code=response.status_code,
                response_body=error_body
            )

        if response.status_code == 404:
            raise BackendNotFoundError(
                f"Resource not found: {error_msg}",
                status_code=404,
                response_body=error_body
            )

        if response.status_code in (400, 409, 422):
            raise BackendValidationError(
                f"Request rejected: {error_msg}",
                status_code=response.status_code,
                response_body=error_body
            )

        raise BackendError(
            f"Backend error {response.status_code}: {error_msg}",
            status_code=response.status_code,
            response_body=error_body
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Union[Dict[str, Any], List[Dict[str, Any]]]] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """Make authenticated request to the backend."""
        if not self.is_configured:
            raise BackendError("Backend client is not configured (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")

        url = f"{self.rest_url}/{path.lstrip('/')}"
        logger.debug(f"{method} {url} params={params}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_body,
                    headers=self._get_headers(prefer),
                )
        except httpx.TimeoutException as e:
            raise BackendError(f"Backend request timed out: {method} {path}") from e
        except httpx.HTTPError as e:
            raise BackendError(f"Backend request failed: {method} {path}: {e}") from e

        return self._handle_response(response)

    # =========================================================================
    # TABLE ACCESS
    # =========================================================================

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, str]] = None,
        order: Optional[OrderSpec] = None,
    ) -> List[Dict[str, Any]]:
        """
        Read rows from a table.

        Args:
            table: Table name
            columns: PostgREST select list
            filters: Column -> operator expression (e.g. {"is_active": "eq.true"})
            order: (column, ascending) pairs

        Returns:
            List of row dicts (empty list when the table has no matching rows)
        """
        params: Dict[str, str] = {"select": columns}
        params.update(filters or {})
        order_clause = build_order(order)
        if order_clause:
            params["order"] = order_clause

        data = await self._request("GET", table, params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise BackendError(f"Unexpected response shape from {table}: {type(data).__name__}")
        return data

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return the stored representation."""
        data = await self._request("POST", table, json_body=row, prefer="return=representation")
        return _single(data, table)

    async def upsert(self, table: str, row: Dict[str, Any], on_conflict: Optional[str] = None) -> Dict[str, Any]:
        """Insert or merge one row and return the stored representation."""
        params = {"on_conflict": on_conflict} if on_conflict else None
        data = await self._request(
            "POST",
            table,
            params=params,
            json_body=row,
            prefer="resolution=merge-duplicates,return=representation",
        )
        return _single(data, table)

    async def update(self, table: str, values: Dict[str, Any], filters: Dict[str, str]) -> List[Dict[str, Any]]:
        """Update matching rows and return them."""
        if not filters:
            raise ValueError("update requires at least one filter")
        data = await self._request("PATCH", table, params=dict(filters), json_body=values, prefer="return=representation")
        return data or []

    async def delete(self, table: str, filters: Dict[str, str]) -> List[Dict[str, Any]]:
        """Delete matching rows and return them."""
        if not filters:
            raise ValueError("delete requires at least one filter")
        data = await self._request("DELETE", table, params=dict(filters), prefer="return=representation")
        return data or []

    # =========================================================================
    # RPC
    # =========================================================================

    async def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Call a database function."""
        return await self._request("POST", f"rpc/{function}", json_body=params or {})


def _single(data: Any, table: str) -> Dict[str, Any]:
    if isinstance(data, list):
        if not data:
            raise BackendError(f"No row returned from {table}")
        return data[0]
    if isinstance(data, dict):
        return data
    raise BackendError(f"Unexpected response shape from {table}: {type(data).__name__}")
