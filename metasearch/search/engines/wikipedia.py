"""
Wikipedia full-text search.
"""

from __future__ import annotations

from urllib.parse import quote_plus

from bs4 import Tag

from metasearch.search.engine_config import EngineConfig
from metasearch.search.engines.base import SearchEngine, build_header_map
from metasearch.search.provider import PageContext, RequestSpec, SearchResult
from metasearch.search.query_builder import build_query
from metasearch.search.result_parser import inner_text


class Wikipedia(SearchEngine):
    """Wikipedia Special:Search scraper.

    One instance per language; each is tagged "wikipedia-<language>" and
    queries its own host.
    """

    def __init__(self, config: EngineConfig, language: str = "en"):
        super().__init__(config, name=f"wikipedia-{language}")
        self.language = language
        self.host = config.host_for(language)

    def build_request(self, context: PageContext) -> RequestSpec:
        offset = self.page_offset(context.page)

        params: list[tuple[str, str]] = [
            ("limit", str(self.config.pagination.results_per_page)),
        ]
        if offset is not None:
            params.append(("offset", str(offset)))
        params.extend(
            [
                ("profile", "default"),
                ("search", quote_plus(context.query)),
                ("title", "Special:Search"),
                ("ns0", "1"),
            ]
        )

        url = f"{self.host}/w/index.php?{build_query(params)}"

        headers = build_header_map(
            {
                "User-Agent": context.user_agent,
                "Referer": self.host,
            }
        )
        return RequestSpec(url=url, params=params, headers=headers, offset=offset)

    def build_result(self, title: Tag, link: Tag, description: Tag) -> SearchResult | None:
        href = link.get("href")
        if not isinstance(href, str):
            return None

        return SearchResult(
            title=inner_text(title),
            url=self.resolve_url(href, self.host),
            description=inner_text(description),
            engines={self.name},
        )
