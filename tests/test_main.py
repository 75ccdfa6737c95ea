"""
Tests for the command line entry point.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

pytestmark = pytest.mark.unit

from metasearch import main as main_module
from metasearch.search.provider import (
    DispatchResponse,
    EngineOutcome,
    EngineStatus,
    SearchResult,
)


def _response(error: str | None = None) -> DispatchResponse:
    return DispatchResponse(
        query="python",
        results=[
            SearchResult(
                title="Welcome to Python.org",
                url="https://www.python.org/",
                description="The official home of the Python Programming Language.",
                engines={"mojeek", "yahoo"},
            )
        ],
        outcomes=[EngineOutcome(engine="mojeek", status=EngineStatus.OK, result_count=1)],
        error=error,
    )


class TestMain:
    """Tests for main()."""

    def test_prints_json(self, capsys):
        run_search = AsyncMock(return_value=_response())

        with (
            patch.object(main_module, "run_search", run_search),
            patch.object(main_module, "configure_logging"),
        ):
            exit_code = main_module.main(
                ["python", "--page", "1", "--safe-search", "2", "--engines", "mojeek, yahoo"]
            )

        assert exit_code == 0
        run_search.assert_awaited_once_with(
            "python",
            page=1,
            safe_search=2,
            engines=["mojeek", "yahoo"],
            user_agent=None,
        )
        output = json.loads(capsys.readouterr().out)
        assert output["ok"] is True
        assert output["results"][0]["engines"] == ["mojeek", "yahoo"]

    def test_all_failed_exit_code(self, capsys):
        run_search = AsyncMock(return_value=_response(error="All engines failed: mojeek: boom"))

        with (
            patch.object(main_module, "run_search", run_search),
            patch.object(main_module, "configure_logging"),
        ):
            exit_code = main_module.main(["python"])

        assert exit_code == 1
        assert json.loads(capsys.readouterr().out)["error"].startswith("All engines failed")

    def test_negative_page_rejected(self):
        with pytest.raises(SystemExit):
            main_module.main(["python", "--page", "-1"])

    def test_invalid_safe_search_rejected(self):
        with pytest.raises(SystemExit):
            main_module.main(["python", "--safe-search", "5"])


class TestRunSearch:
    """Tests for run_search with the network replaced."""

    @pytest.mark.asyncio
    async def test_uses_configured_engines(self, make_client, load_fixture, mock_settings):
        fake = make_client({"mojeek.com": load_fixture("mojeek_results.html")})

        class FakeClientContext:
            def __init__(self, config):
                self.config = config

            async def __aenter__(self):
                return fake

            async def __aexit__(self, exc_type, exc_val, exc_tb):
                return None

        with (
            patch.object(main_module, "HttpxClient", FakeClientContext),
            patch.object(main_module, "get_settings", return_value=mock_settings),
        ):
            response = await main_module.run_search("python asyncio", engines=["mojeek"])

        assert response.ok is True
        assert [o.engine for o in response.outcomes] == ["mojeek"]
        assert len(response.results) == 2
