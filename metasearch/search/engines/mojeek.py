"""
Mojeek search engine.
"""

from __future__ import annotations

from urllib.parse import quote_plus

from bs4 import Tag

from metasearch.search.engines.base import (
    FORM_CONTENT_TYPE,
    GENERIC_REFERER,
    SearchEngine,
    build_header_map,
)
from metasearch.search.provider import PageContext, RequestSpec, SearchResult
from metasearch.search.query_builder import build_cookie, build_query
from metasearch.search.result_parser import inner_text

# Engines offered in Mojeek's "search elsewhere" bar
OTHER_SEARCH_ENGINES = (
    "Bing",
    "Brave",
    "DuckDuckGo",
    "Ecosia",
    "Google",
    "Lilo",
    "Metager",
    "Qwant",
    "Startpage",
    "Swisscows",
    "Yandex",
    "Yep",
    "You",
)


class Mojeek(SearchEngine):
    """Mojeek scraper.

    Mojeek flags automated requests unless a set of display preferences is
    sent both as query parameters and as cookies, in a fixed order.
    """

    def build_request(self, context: PageContext) -> RequestSpec:
        results_per_page = str(self.config.pagination.results_per_page)
        # Only off (0) and on (1) exist upstream
        safe = "0" if context.safe_search == 0 else "1"

        params: list[tuple[str, str]] = [
            ("t", results_per_page),
            ("theme", "dark"),
            ("arc", "none"),
            ("date", "1"),
            ("cdate", "1"),
            ("tlen", "100"),
            ("ref", "1"),
            ("hp", "minimal"),
            ("lb", "en"),
            ("qss", "%2C".join(OTHER_SEARCH_ENGINES)),
            ("safe", safe),
        ]

        offset = self.page_offset(context.page)
        url = f"{self.config.base_url}/search?q={quote_plus(context.query)}"
        if offset is not None:
            url += f"&s={offset}"
        url += build_query(params)

        headers = build_header_map(
            {
                "User-Agent": context.user_agent,
                "Referer": GENERIC_REFERER,
                "Content-Type": FORM_CONTENT_TYPE,
                "Cookie": build_cookie(params),
            }
        )
        return RequestSpec(url=url, params=params, headers=headers, offset=offset)

    def build_result(self, title: Tag, link: Tag, description: Tag) -> SearchResult | None:
        href = link.get("href")
        if not isinstance(href, str):
            return None

        return SearchResult(
            title=inner_text(title),
            url=href,
            description=inner_text(description),
            engines={self.name},
        )
