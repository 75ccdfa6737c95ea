"""
HTTP client used by engines to fetch result pages.

Engines depend only on the HttpClient protocol: fetch a URL with headers,
get the body text back or a TransportError. HttpxClient implements it over
one shared httpx.AsyncClient connection pool.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from metasearch.utils.config import HttpConfig
from metasearch.utils.logging import get_logger

logger = get_logger(__name__)


class TransportError(Exception):
    """Raised when an upstream page could not be fetched."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


@runtime_checkable
class HttpClient(Protocol):
    """Minimal HTTP contract engines rely on."""

    async def fetch(self, url: str, headers: dict[str, str]) -> str:
        """
        Fetch a page.

        Args:
            url: Absolute URL.
            headers: Request headers.

        Returns:
            Response body text.

        Raises:
            TransportError: On network failure or error status.
        """
        ...


class HttpxClient:
    """HttpClient over a shared httpx.AsyncClient.

    Example:
        async with HttpxClient(settings.http) as client:
            html = await client.fetch(url, headers)
    """

    def __init__(
        self,
        config: HttpConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Timeout, pool and redirect settings. Defaults to HttpConfig().
            transport: Optional transport (e.g. httpx.MockTransport in tests).
        """
        self._config = config or HttpConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout),
                limits=httpx.Limits(
                    max_connections=self._config.max_connections,
                    max_keepalive_connections=self._config.max_keepalive_connections,
                ),
                follow_redirects=self._config.follow_redirects,
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str, headers: dict[str, str]) -> str:
        client = self._get_client()

        try:
            response = await client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {e.response.status_code} from upstream",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Request failed: {type(e).__name__}: {e}",
                url=url,
            ) from e

        logger.debug(
            "Fetched upstream page",
            url=url,
            status_code=response.status_code,
            size=len(response.content),
        )
        return response.text

    async def close(self) -> None:
        """Close the connection pool."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpxClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
