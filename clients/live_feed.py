"""
Live Feed Client

Async HTTP client for the IdP log backend.

Endpoints (relative to the configured base URL):
    GET /health -> {"status": "ok", "dataSourceMissing": false}
    GET /logs   -> [RequestLog, ...]  (camelCase, ISO timestamps)
    GET /debug  -> opaque text for a human operator

DESIGN RULES:
- One failure type (FeedError) for transport, status and payload problems
- No retries; the scheduler's next tick is the retry
- No timeout beyond the transport's own
"""

import logging
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from schemas.health import HealthReport
from schemas.trace import RequestLog

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(List[RequestLog])


class FeedError(Exception):
    """Raised when the live feed cannot be read."""


class LiveFeedClient:
    """
    Reads health, records and debug output from the log backend.

    Holds one httpx.AsyncClient, created lazily unless injected.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = client

    @property
    def base_url(self) -> str:
        return self._base_url

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def close(self) -> None:
        """Close the connection pool. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._http().get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FeedError(f"GET {path} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FeedError(f"GET {path} failed: {e}") from e
        return response

    async def health(self) -> HealthReport:
        """Probe the backend's health endpoint."""
        response = await self._get("/health")
        try:
            return HealthReport.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise FeedError(f"Malformed health payload: {e}") from e

    async def fetch_logs(self) -> List[RequestLog]:
        """
        Fetch the backend's current records, newest first.

        Timestamps arrive as strings and are parsed into datetimes.
        """
        response = await self._get("/logs")
        try:
            records = _RECORDS.validate_python(response.json())
        except (ValueError, ValidationError) as e:
            raise FeedError(f"Malformed log payload: {e}") from e
        logger.debug(f"Fetched {len(records)} records from {self._base_url}")
        return records

    async def debug(self) -> str:
        """Raw debug output, passed through untouched."""
        response = await self._get("/debug")
        return response.text
