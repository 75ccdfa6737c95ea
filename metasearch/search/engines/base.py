"""
Base Search Engine class.

Every upstream engine runs the same pipeline:

1. build the request (URL with pagination offset, headers, cookie)
2. fetch the result page through the shared HTTP client
3. parse it and check for the engine's "no results" marker
4. extract results with the engine's selectors and result builder

Subclasses supply the engine-specific request and result construction.
"""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from urllib.parse import urljoin

from bs4 import Tag

from metasearch.search.engine_config import EngineConfig
from metasearch.search.http_client import HttpClient, TransportError
from metasearch.search.provider import (
    EmptyResultSet,
    PageContext,
    ProviderError,
    RequestSpec,
    SearchResult,
    UnexpectedError,
)
from metasearch.search.result_parser import (
    SearchResultParser,
    inner_text,
    parse_document,
)
from metasearch.utils.logging import get_logger

logger = get_logger(__name__)

GENERIC_REFERER = "https://google.com/"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_FORBIDDEN_VALUE_CHARS = ("\r", "\n", "\x00")


def build_header_map(headers: dict[str, str]) -> dict[str, str]:
    """
    Validate request headers.

    Args:
        headers: Header name to value.

    Returns:
        The validated headers.

    Raises:
        ValueError: If a name is not an HTTP token, or a value contains
            line breaks or characters outside latin-1.
    """
    validated: dict[str, str] = {}
    seen: set[str] = set()

    for name, value in headers.items():
        if not _HEADER_NAME_RE.match(name):
            raise ValueError(f"Invalid header name: {name!r}")
        if name.lower() in seen:
            raise ValueError(f"Duplicate header: {name}")
        if any(ch in value for ch in _FORBIDDEN_VALUE_CHARS):
            raise ValueError(f"Header {name} contains a line break or NUL")
        try:
            value.encode("latin-1")
        except UnicodeEncodeError as e:
            raise ValueError(f"Header {name} is not latin-1 encodable") from e

        seen.add(name.lower())
        validated[name] = value

    return validated


class SearchEngine(ABC):
    """
    Base class for upstream search engines.

    Holds the engine's immutable configuration and the parser compiled from
    its selectors. Subclasses implement build_request() and build_result().
    """

    def __init__(self, config: EngineConfig, name: str | None = None):
        """
        Initialize engine.

        Args:
            config: Engine configuration (shared, not copied).
            name: Engine tag. Defaults to the configuration name.

        Raises:
            ParserConfigError: If a configured selector is invalid.
        """
        self._config = config
        self._name = (name or config.name).lower()
        self.parser = SearchResultParser.from_config(config.selectors)

    @property
    def name(self) -> str:
        """Engine tag attached to every result it produces."""
        return self._name

    @property
    def config(self) -> EngineConfig:
        return self._config

    def page_offset(self, page: int) -> int | None:
        """Offset parameter for a zero-based page, None if omitted."""
        return self._config.pagination.offset(page)

    @abstractmethod
    def build_request(self, context: PageContext) -> RequestSpec:
        """
        Build the upstream request for a search.

        Args:
            context: Search request context.

        Returns:
            RequestSpec with URL, ordered parameters and headers.

        Raises:
            ValueError: If headers cannot be constructed.
        """

    @abstractmethod
    def build_result(self, title: Tag, link: Tag, description: Tag) -> SearchResult | None:
        """
        Build a result from one item's elements.

        Returns:
            SearchResult, or None to skip the item.
        """

    def is_empty_result_page(self, document: Tag) -> bool:
        """Check the page for the engine's "no results" marker."""
        marker = next(self.parser.find_no_result_markers(document), None)
        if marker is None:
            return False

        marker_text = self._config.no_results_text
        if marker_text is None:
            return True
        return marker_text in inner_text(marker)

    def resolve_url(self, href: str, host: str | None = None) -> str:
        """Resolve a host-relative link against the engine host."""
        return urljoin((host or self._config.base_url) + "/", href.strip())

    async def fetch_html(self, request: RequestSpec, client: HttpClient) -> str:
        """Fetch the result page, mapping transport failures to UnexpectedError."""
        try:
            return await client.fetch(request.url, request.headers)
        except TransportError as e:
            raise UnexpectedError(
                f"Failed to fetch results: {e}",
                engine=self.name,
            ) from e

    async def search(self, context: PageContext, client: HttpClient) -> list[SearchResult]:
        """
        Run the engine pipeline for one search.

        Args:
            context: Search request context.
            client: Shared HTTP client.

        Returns:
            Extracted results in page order (possibly empty).

        Raises:
            EmptyResultSet: If the engine reports no matches.
            UnexpectedError: On header, transport or parse failure.
        """
        start_time = time.time()

        try:
            request = self.build_request(context)
        except ValueError as e:
            raise UnexpectedError(f"Invalid request headers: {e}", engine=self.name) from e

        logger.debug(
            "Upstream request",
            engine=self.name,
            url=request.url,
            offset=request.offset,
        )

        html = await self.fetch_html(request, client)

        try:
            document = parse_document(html)

            if self.is_empty_result_page(document):
                raise EmptyResultSet(self.name)

            results = self.parser.extract_results(document, self.build_result)
        except ProviderError:
            raise
        except Exception as e:
            raise UnexpectedError(
                f"Failed to parse result page: {type(e).__name__}: {e}",
                engine=self.name,
            ) from e

        if not results and self.parser.count_result_items(document) == 0:
            logger.warning(
                "Result selector matched nothing",
                engine=self.name,
                query=context.query[:50],
                diagnostic=self._config.get_diagnostic("results") or None,
            )

        logger.info(
            "Parsed search results",
            engine=self.name,
            result_count=len(results),
            query=context.query[:50],
            elapsed_ms=round((time.time() - start_time) * 1000, 1),
        )
        return results

    async def fetch_results(
        self,
        query: str,
        page: int,
        user_agent: str,
        client: HttpClient,
        safe_search: int = 0,
    ) -> list[tuple[str, SearchResult]]:
        """
        Fetch one page of results from this engine.

        Args:
            query: Query text.
            page: Zero-based page index.
            user_agent: User agent sent upstream.
            client: Shared HTTP client.
            safe_search: Safe search level (0-2).

        Returns:
            (engine tag, result) pairs in page order.

        Raises:
            EmptyResultSet: If the engine reports no matches.
            UnexpectedError: On header, transport or parse failure.
        """
        context = PageContext(
            query=query,
            page=page,
            safe_search=safe_search,
            user_agent=user_agent,
        )
        results = await self.search(context, client)
        return [(self.name, result) for result in results]
