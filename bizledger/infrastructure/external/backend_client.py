# bizledger/infrastructure/external/backend_client.py
"""
Managed backend (PostgREST) client.

All persistence, numbering and report generation lives behind the backend's
REST interface:

  * stored procedures: POST /rest/v1/rpc/<name>        (JSON params)
  * table reads:       GET  /rest/v1/<table>?col=eq.x  (PostgREST filters)
  * table inserts:     POST /rest/v1/<table>           (return=representation)

Required headers on every call:
  apikey, Authorization: Bearer <key>
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from bizledger.core.config import settings

logger = logging.getLogger("backend_client")


class BackendError(Exception):
    """Raised when the backend rejects a call or cannot be reached."""

    def __init__(self, message: str, status_code: int = 0, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response or {}


class RecordNotFoundError(LookupError):
    """The row does not exist, or belongs to another company."""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"{table} {record_id} not found")
        self.table = table
        self.record_id = record_id


async def ensure_company_record(
    backend: BackendClient, table: str, record_id: str, company_id: str,
) -> None:
    """Raise RecordNotFoundError unless ``table.id = record_id`` is owned by ``company_id``."""
    rows = await backend.select(table, {"id": record_id, "company_id": company_id}, columns="id")
    if not rows:
        logger.info("%s %s is not visible to company %s", table, record_id, company_id)
        raise RecordNotFoundError(table, record_id)


class BackendClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.api_key = settings.BACKEND_API_KEY if api_key is None else api_key
        self.timeout = timeout or settings.BACKEND_TIMEOUT
        self._transport = transport

    def _headers(self, **extra: str) -> Dict[str, str]:
        h = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            h["apikey"] = self.api_key
            h["Authorization"] = f"Bearer {self.api_key}"
        h.update(extra)
        return h

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, str] | None = None,
        json_body: Any = None,
        headers: Dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base}{path}"
        logger.debug("Backend %s %s", method, path)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                r = await client.request(
                    method, url, params=params, json=json_body, headers=headers or self._headers(),
                )
                r.raise_for_status()
            except httpx.HTTPStatusError as exc:
                body: Any = {}
                try:
                    body = exc.response.json()
                except ValueError:
                    body = {"raw": exc.response.text[:500]}
                message = body.get("message") if isinstance(body, dict) else None
                raise BackendError(
                    message or f"Backend returned HTTP {exc.response.status_code} for {path}",
                    status_code=exc.response.status_code,
                    response=body,
                ) from exc
            except httpx.HTTPError as exc:
                raise BackendError(f"Backend unreachable for {path}: {exc}") from exc

        raw = r.text.strip()
        if not raw:
            return None
        try:
            return r.json()
        except ValueError as exc:
            raise BackendError(
                f"Backend returned non-JSON body for {path}",
                status_code=r.status_code,
                response={"raw": raw[:500]},
            ) from exc

    # ---- Public API ----

    async def rpc(self, name: str, params: Dict[str, Any]) -> Any:
        """Call a stored procedure and return its decoded result."""
        return await self._request("POST", f"/rest/v1/rpc/{name}", json_body=params)

    async def select(
        self,
        table: str,
        filters: Dict[str, Any] | None = None,
        columns: str = "*",
        order: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Read rows with simple equality / ``in`` filters."""
        params: Dict[str, str] = {"select": columns}
        for col, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                params[col] = "in.(" + ",".join(str(v) for v in value) + ")"
            elif isinstance(value, bool):
                params[col] = f"is.{str(value).lower()}"
            else:
                params[col] = f"eq.{value}"
        if order:
            params["order"] = order
        data = await self._request("GET", f"/rest/v1/{table}", params=params)
        return data or []

    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert rows and return them as stored."""
        data = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json_body=rows,
            headers=self._headers(Prefer="return=representation"),
        )
        return data or []


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_client: BackendClient | None = None


def get_backend_client() -> BackendClient:
    global _client
    if _client is None:
        _client = BackendClient()
    return _client
