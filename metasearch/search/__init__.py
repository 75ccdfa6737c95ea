"""
Search module for metasearch.

Queries several upstream search engines concurrently by scraping their HTML
result pages, and merges the results into one list.
"""

from metasearch.search.dispatcher import Dispatcher, merge_results, normalize_url
from metasearch.search.engine_config import (
    EngineConfig,
    Pagination,
    ProviderConfig,
    load_engine_configs,
)
from metasearch.search.engines import SearchEngine, build_registry
from metasearch.search.http_client import HttpClient, HttpxClient, TransportError
from metasearch.search.provider import (
    DispatchResponse,
    EmptyResultSet,
    EngineOutcome,
    EngineStatus,
    PageContext,
    ProviderError,
    SearchEngineRegistry,
    SearchResult,
    UnexpectedError,
)
from metasearch.search.result_parser import ParserConfigError, SearchResultParser

__all__ = [
    "Dispatcher",
    "merge_results",
    "normalize_url",
    "EngineConfig",
    "Pagination",
    "ProviderConfig",
    "load_engine_configs",
    "SearchEngine",
    "build_registry",
    "HttpClient",
    "HttpxClient",
    "TransportError",
    "DispatchResponse",
    "EmptyResultSet",
    "EngineOutcome",
    "EngineStatus",
    "PageContext",
    "ProviderError",
    "SearchEngineRegistry",
    "SearchResult",
    "UnexpectedError",
    "ParserConfigError",
    "SearchResultParser",
]
