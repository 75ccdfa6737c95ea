"""
Search dispatcher.

Fans one query out to every enabled engine concurrently and merges the
outcomes:

- each engine runs as its own task, bounded by a per-engine timeout
- an empty result set, an error or a timeout in one engine never affects
  the others
- results are merged in registration order, not completion order, so the
  output is reproducible; duplicates (same normalized URL) are collapsed
  and their engine tags unioned
- only when every engine fails does the response carry an error
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Iterable
from urllib.parse import urlsplit, urlunsplit

from metasearch.search.engines.base import SearchEngine
from metasearch.search.http_client import HttpClient
from metasearch.search.provider import (
    DispatchResponse,
    EmptyResultSet,
    EngineOutcome,
    EngineStatus,
    PageContext,
    SearchEngineRegistry,
    SearchResult,
    UnexpectedError,
)
from metasearch.utils.logging import LogContext, get_logger
from metasearch.utils.user_agent import random_user_agent

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


def normalize_url(url: str) -> str:
    """
    Normalize a result URL for duplicate detection.

    Lower-cases scheme and host, drops the fragment and a trailing slash.
    Strings that are not absolute URLs are only stripped.
    """
    url = url.strip()
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url

    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


def _merge_key(result: SearchResult) -> tuple[str, ...]:
    """
    Duplicate key for a result.

    Absolute URLs merge on the normalized URL. Anything else (a missing
    link placeholder) only merges with an identical title and URL.
    """
    url = normalize_url(result.url)
    if urlsplit(url).netloc:
        return (url,)
    return (result.title, url)


def merge_results(batches: Iterable[list[SearchResult]]) -> list[SearchResult]:
    """
    Merge per-engine result lists.

    Args:
        batches: Result lists in engine registration order.

    Returns:
        Results in first-seen order; a URL returned by several engines
        appears once with the union of their tags.
    """
    merged: dict[tuple[str, ...], SearchResult] = {}

    for batch in batches:
        for result in batch:
            key = _merge_key(result)
            existing = merged.get(key)
            if existing is None:
                merged[key] = result.model_copy(deep=True)
            else:
                existing.add_engines(result.engines)

    return list(merged.values())


class Dispatcher:
    """
    Runs a search on all registered engines and merges the results.

    Example:
        async with HttpxClient(settings.http) as client:
            dispatcher = Dispatcher(registry, client, timeout=settings.search.request_timeout)
            response = await dispatcher.dispatch("python asyncio", page=0)
            if response.ok:
                for result in response.results:
                    print(result.title, result.url, sorted(result.engines))
    """

    def __init__(
        self,
        registry: SearchEngineRegistry,
        client: HttpClient,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize dispatcher.

        Args:
            registry: Engines to query (shared, read-only).
            client: HTTP client shared by all engine tasks.
            timeout: Per-engine timeout in seconds.
        """
        if timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {timeout}")

        self._registry = registry
        self._client = client
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    async def dispatch(
        self,
        query: str,
        page: int = 0,
        user_agent: str | None = None,
        safe_search: int = 0,
        engines: list[str] | None = None,
    ) -> DispatchResponse:
        """
        Search all (or the selected) engines.

        Args:
            query: Query text.
            page: Zero-based page index.
            user_agent: User agent sent upstream. Random browser UA if None.
            safe_search: Safe search level (0-2).
            engines: Restrict the search to these engine tags.

        Returns:
            DispatchResponse with merged results and per-engine outcomes.
            error is set only when every engine failed.

        Raises:
            RuntimeError: If no engines are registered.
            pydantic.ValidationError: If page or safe_search is out of range.
        """
        if len(self._registry) == 0:
            raise RuntimeError("No search engines registered")

        context = PageContext(
            query=query,
            page=page,
            safe_search=safe_search,
            user_agent=user_agent or random_user_agent(),
        )

        selected, unknown = self._select_engines(engines)

        with LogContext(search_id=uuid.uuid4().hex[:12]):
            start_time = time.time()

            logger.debug(
                "Dispatching search",
                query=query[:50],
                page=page,
                engines=[engine.name for engine in selected],
            )

            # gather keeps registration order regardless of completion order
            runs = await asyncio.gather(
                *(self._run_engine(engine, context) for engine in selected)
            )

            outcomes = [outcome for outcome, _ in runs]
            outcomes.extend(
                EngineOutcome(engine=name, status=EngineStatus.ERROR, error="No such engine")
                for name in unknown
            )

            results = merge_results(batch for _, batch in runs)
            elapsed_ms = (time.time() - start_time) * 1000

            error = None
            if all(outcome.failed for outcome in outcomes):
                error = "All engines failed: " + "; ".join(
                    f"{outcome.engine}: {outcome.error}" for outcome in outcomes
                )
                logger.error(
                    "Search failed on all engines",
                    query=query[:50],
                    engines=[outcome.engine for outcome in outcomes],
                )
            else:
                logger.info(
                    "Dispatch completed",
                    query=query[:50],
                    page=page,
                    result_count=len(results),
                    succeeded=[o.engine for o in outcomes if o.status == EngineStatus.OK],
                    empty=[o.engine for o in outcomes if o.status == EngineStatus.EMPTY],
                    failed=[o.engine for o in outcomes if o.failed],
                    elapsed_ms=round(elapsed_ms, 1),
                )

        return DispatchResponse(
            query=query,
            page=page,
            results=results,
            outcomes=outcomes,
            error=error,
            elapsed_ms=elapsed_ms,
        )

    def _select_engines(
        self,
        engines: list[str] | None,
    ) -> tuple[list[SearchEngine], list[str]]:
        """Resolve requested engine tags, keeping registration order."""
        if not engines:
            return list(self._registry), []

        requested = {name.lower() for name in engines}
        selected = [engine for engine in self._registry if engine.name in requested]
        unknown: list[str] = []
        seen: set[str] = set()
        for name in engines:
            key = name.lower()
            if key not in self._registry and key not in seen:
                seen.add(key)
                unknown.append(name)
        return selected, unknown

    async def _run_engine(
        self,
        engine: SearchEngine,
        context: PageContext,
    ) -> tuple[EngineOutcome, list[SearchResult]]:
        """Run one engine, turning every failure into an outcome."""
        start_time = time.time()

        def outcome(status: EngineStatus, count: int = 0, error: str | None = None) -> EngineOutcome:
            return EngineOutcome(
                engine=engine.name,
                status=status,
                result_count=count,
                error=error,
                elapsed_ms=(time.time() - start_time) * 1000,
            )

        try:
            pairs = await asyncio.wait_for(
                engine.fetch_results(
                    context.query,
                    context.page,
                    context.user_agent,
                    self._client,
                    context.safe_search,
                ),
                timeout=self._timeout,
            )
        except EmptyResultSet:
            logger.debug("Engine returned no results", engine=engine.name)
            return outcome(EngineStatus.EMPTY), []
        except UnexpectedError as e:
            cause = e.__cause__
            logger.warning(
                "Engine search failed",
                engine=engine.name,
                error=e.context,
                cause=repr(cause) if cause is not None else None,
            )
            return outcome(EngineStatus.ERROR, error=e.context), []
        except TimeoutError:
            logger.warning("Engine timed out", engine=engine.name, timeout=self._timeout)
            return outcome(EngineStatus.TIMEOUT, error=f"Timed out after {self._timeout}s"), []
        except Exception as e:
            logger.error(
                "Engine raised unexpected exception",
                engine=engine.name,
                error=f"{type(e).__name__}: {e}",
            )
            return outcome(EngineStatus.ERROR, error=f"{type(e).__name__}: {e}"), []

        results = [result for _, result in pairs]
        return outcome(EngineStatus.OK, count=len(results)), results
