"""HTTP client for the remote calendar feed and weather station API."""

from __future__ import annotations

from typing import Any

import httpx

from .cache import CachedResponse


class UpstreamClient:
    """Thin async wrapper around a lazily created ``httpx.AsyncClient``.

    Responses are returned as ``CachedResponse`` values so they can be stored
    in the edge cache as-is. Non-2xx statuses are returned, not raised; only
    network failures raise (``httpx.HTTPError``). Nothing is retried.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize upstream client.

        Args:
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.timeout = timeout
        self.transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client and cleanup resources."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> UpstreamClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def fetch(
        self,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> CachedResponse:
        """GET a URL and capture the full response.

        Raises:
            httpx.HTTPError: If the request could not be completed
        """
        client = await self._get_http_client()
        response = await client.get(url, headers=headers)
        return CachedResponse(
            status_code=response.status_code,
            headers=tuple(response.headers.items()),
            body=response.content,
        )
