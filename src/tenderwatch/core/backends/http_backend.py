"""
HTTP Backend implementation using httpx.

Provides async HTTP fetching with:
- Browser-like default headers
- A single bounded attempt per request (no retries)
- Blocked status detection
"""

from __future__ import annotations

from datetime import datetime

import httpx

from .base import (
    Backend,
    BlockedError,
    FetchError,
    FetchResult,
    RequestSpec,
)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)

# Status codes that indicate blocking
BLOCKED_STATUS_CODES = {403, 406, 418, 451}


class HttpBackend(Backend):
    """HTTP backend using httpx for async requests.

    Every call to ``fetch`` is exactly one attempt. Retrying is the
    caller's business; the fallback fetcher moves to the next strategy
    instead of repeating one.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str | None = None,
        default_headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP backend.

        Args:
            timeout: Default request timeout in seconds
            user_agent: Custom user agent
            default_headers: Default headers for all requests
            transport: Custom httpx transport (used by tests)
        """
        self.timeout = timeout
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self._transport = transport

        self.default_headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
            "Upgrade-Insecure-Requests": "1",
            **(default_headers or {}),
        }

        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "http"

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers=self.default_headers,
                transport=self._transport,
            )
        return self._client

    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Issue one request.

        Args:
            request: Request specification

        Returns:
            FetchResult with response data (any status code except blocked ones)

        Raises:
            BlockedError: On a blocking status code
            FetchError: On transport failure or timeout
        """
        client = await self._ensure_client()
        headers = {**self.default_headers, **request.headers}
        timeout = httpx.Timeout(request.timeout) if request.timeout else httpx.USE_CLIENT_DEFAULT

        start_time = datetime.utcnow()
        try:
            response = await client.request(
                request.method.upper(),
                request.url,
                headers=headers,
                params=request.params or None,
                json=request.json_data,
                follow_redirects=request.follow_redirects,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise FetchError(f"Timeout: {e}", url=request.url, cause=e) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Transport error: {e}", url=request.url, cause=e) from e

        elapsed_ms = (datetime.utcnow() - start_time).total_seconds() * 1000

        if response.status_code in BLOCKED_STATUS_CODES:
            raise BlockedError(
                f"Request blocked with status {response.status_code}",
                url=str(response.url),
                status_code=response.status_code,
            )

        return FetchResult(
            url=request.url,
            final_url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
            elapsed_ms=elapsed_ms,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
