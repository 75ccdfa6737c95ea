"""
Pytest fixtures and configuration for metasearch tests.

=============================================================================
Test Classification
=============================================================================

- @pytest.mark.unit: Single class/function, no external dependencies
  - DEFAULT: Tests without marker are auto-classified as unit

- @pytest.mark.integration: Several components together (registry, engines,
  dispatcher) with the network replaced by a fake HTTP client

=============================================================================
Mock Strategy
=============================================================================

- Upstream engines: never contacted. Engines fetch through FakeHttpClient,
  which serves saved result pages from tests/fixtures/search_html
- HttpxClient: exercised against httpx.MockTransport
- File I/O: Use tmp_path fixture
"""

import asyncio
import os
from collections.abc import Callable
from pathlib import Path

import pytest

# Set test environment before importing anything else
os.environ["METASEARCH_CONFIG_DIR"] = str(Path(__file__).parent.parent / "config")
os.environ["METASEARCH_GENERAL__LOG_LEVEL"] = "DEBUG"

from metasearch.search.engine_config import EngineConfig, load_engine_configs  # noqa: E402
from metasearch.search.http_client import TransportError  # noqa: E402
from metasearch.search.provider import PageContext  # noqa: E402
from metasearch.utils.config import (  # noqa: E402
    GeneralConfig,
    HttpConfig,
    SearchConfig,
    Settings,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "search_html"
CONFIG_DIR = Path(__file__).parent.parent / "config"

TEST_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0"


# =============================================================================
# Pytest Hooks for Test Classification
# =============================================================================


def pytest_configure(config):
    """Register custom markers for test classification."""
    config.addinivalue_line(
        "markers", "unit: Unit tests with no external dependencies (fast, <1s/test)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests with mocked external dependencies (<5s/test)"
    )


def pytest_collection_modifyitems(config, items):
    """Classify tests without an explicit marker as unit tests."""
    for item in items:
        has_classification = any(
            marker.name in ("unit", "integration") for marker in item.iter_markers()
        )
        if not has_classification:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fake HTTP Client
# =============================================================================


class FakeHttpClient:
    """HttpClient that serves canned pages by URL substring.

    A route maps a URL substring to either page text or an exception to
    raise. An optional delay per route simulates a slow upstream.

    Example:
        client = FakeHttpClient({"mojeek.com": mojeek_html})
        html = await client.fetch("https://www.mojeek.com/search?q=x", {})
    """

    def __init__(
        self,
        routes: dict[str, str | Exception] | None = None,
        delays: dict[str, float] | None = None,
    ):
        self.routes = routes or {}
        self.delays = delays or {}
        self.requests: list[tuple[str, dict[str, str]]] = []

    async def fetch(self, url: str, headers: dict[str, str]) -> str:
        self.requests.append((url, dict(headers)))

        for key, delay in self.delays.items():
            if key in url:
                await asyncio.sleep(delay)

        for key, response in self.routes.items():
            if key in url:
                if isinstance(response, Exception):
                    raise response
                return response

        raise TransportError(f"No route for {url}", url=url, status_code=404)

    def urls(self) -> list[str]:
        return [url for url, _ in self.requests]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Get path to test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def load_fixture() -> Callable[[str], str]:
    """Load a saved result page by file name."""

    def _load(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _load


@pytest.fixture
def engine_configs() -> dict[str, EngineConfig]:
    """Engine configurations from the shipped engines.yaml."""
    return load_engine_configs(CONFIG_DIR / "engines.yaml")


@pytest.fixture
def mock_settings() -> Settings:
    """Create settings for testing."""
    return Settings(
        general=GeneralConfig(log_level="DEBUG"),
        search=SearchConfig(
            request_timeout=5.0,
            engines={"mojeek": True, "startpage": True, "wikipedia": True, "yahoo": True},
            wikipedia_languages=["en"],
        ),
        http=HttpConfig(timeout=5.0),
    )


@pytest.fixture
def page_context() -> PageContext:
    """First page, safe search off."""
    return PageContext(query="python asyncio", page=0, safe_search=0, user_agent=TEST_USER_AGENT)


@pytest.fixture
def fake_client() -> FakeHttpClient:
    """Fake client with no routes (every fetch fails)."""
    return FakeHttpClient()


@pytest.fixture
def make_client() -> type[FakeHttpClient]:
    """FakeHttpClient class, for tests that configure their own routes."""
    return FakeHttpClient
