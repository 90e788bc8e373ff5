"""
Async client for the TOS HTTP API.

Every call carries a fixed timeout. Anything that means "the server could
not answer" (connection errors, timeouts, 5xx, an envelope with
success=false) is raised as StoreUnavailableError so callers can fall back to
the offline cache. 404 and 400 answers keep their meaning as NotFoundError
and ValidationError.

A fresh httpx.AsyncClient is opened per call; pass transport= to route
requests elsewhere (tests use httpx.MockTransport).
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from tos.errors import NotFoundError, StoreUnavailableError, ValidationError
from tos.models.record import TosRecord, record_from_wire
from tos.store.base import (
    DEFAULT_PAGE_SIZE,
    BulkUpdateItem,
    BulkUpdateResult,
    Page,
    SearchFilters,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
HEALTH_TIMEOUT_SECONDS = 5.0


class TosApiClient:
    """Thin async wrapper over the TOS REST endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        health_timeout: float = HEALTH_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.health_timeout = health_timeout
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or self.timeout,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Send one request and return the decoded success envelope."""
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise StoreUnavailableError(
                f"{method} {path} timed out after {self.timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"{method} {path} failed: {exc}") from exc

        body = _json_or_empty(response)
        message = body.get("message") or body.get("error") or response.reason_phrase

        if response.status_code == 404:
            record_id = _record_id_from_path(path)
            if record_id is not None:
                raise NotFoundError(record_id)
            raise StoreUnavailableError(f"{method} {path} not found: {message}")
        if response.status_code == 400:
            raise ValidationError(message)
        if response.status_code >= 400:
            raise StoreUnavailableError(
                f"{method} {path} failed: {response.status_code} {message}"
            )
        if not body.get("success"):
            raise StoreUnavailableError(f"{method} {path} failed: {message}")
        return body

    async def list_records(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> Page:
        body = await self._request("GET", "/tos", params={"limit": limit, "offset": offset})
        return _page_from_body(body)

    async def search(self, query: str, filters: Optional[SearchFilters] = None) -> Page:
        """Server-side ranked search (no fuzzy tier)."""
        filters = filters or SearchFilters()
        params: Dict[str, Any] = {"q": query, "limit": filters.limit, "offset": filters.offset}
        if filters.contractor:
            params["contractor"] = filters.contractor
        if filters.status:
            params["status"] = filters.status
        if filters.has_date_range:
            params["dateStart"] = filters.date_start.isoformat()
            params["dateEnd"] = filters.date_end.isoformat()
        body = await self._request("GET", "/tos/search", params=params)
        return _page_from_body(body)

    async def update_record(self, record_id: int, field: str, value: str) -> TosRecord:
        body = await self._request(
            "PUT", f"/tos/{record_id}", json={"field": field, "value": value}
        )
        return record_from_wire(body["data"])

    async def bulk_update(self, updates: List[BulkUpdateItem]) -> BulkUpdateResult:
        body = await self._request(
            "POST",
            "/tos/bulk-update",
            json={"updates": [{"id": u.id, "field": u.field, "value": u.value} for u in updates]},
        )
        data = body["data"]
        return BulkUpdateResult(
            successful=data["successful"],
            failed=data["failed"],
            errors=list(data.get("errors", [])),
        )

    async def get_contractors(self) -> List[str]:
        body = await self._request("GET", "/tos/contractors")
        return list(body["data"])

    async def get_statuses(self) -> List[str]:
        body = await self._request("GET", "/tos/statuses")
        return list(body["data"])

    async def check_connection(self) -> bool:
        """Probe /health with a short timeout. Never raises."""
        try:
            async with self._client(self.health_timeout) as client:
                response = await client.get("/health")
            return response.is_success
        except httpx.HTTPError as exc:
            logger.debug("Health check failed: %s", exc)
            return False


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _record_id_from_path(path: str) -> Optional[int]:
    tail = path.rstrip("/").rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None


def _page_from_body(body: Dict[str, Any]) -> Page:
    pagination = body.get("pagination", {})
    records = [record_from_wire(item) for item in body.get("data", [])]
    return Page(
        records=records,
        total=pagination.get("total", len(records)),
        limit=pagination.get("limit", len(records)),
        offset=pagination.get("offset", 0),
    )
