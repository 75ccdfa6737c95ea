"""
Startpage search engine.
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
from metasearch.search.result_parser import inner_text

# Serialized Startpage preferences: english UI, 10 results, no family filter
PREFERENCES_COOKIE = (
    "preferences=connect_to_serverEEE0N1Ndate_timeEEEworldN1Ndisable_family_filterEEE0N1N"
    "disable_open_in_new_windowEEE0N1Nenable_post_methodEEE1N1Nenable_proxy_safety_suggestEEE1N1N"
    "enable_stay_controlEEE0N1Ninstant_answersEEE1N1Nlang_homepageEEEs%2Fnight%2FenN1N"
    "languageEEEenglishN1Nlanguage_uiEEEenglishN1Nnum_of_resultsEEE10N1N"
    "search_results_regionEEEallN1NsuggestionsEEE1N1Nwt_unitEEEcelsius"
)


class Startpage(SearchEngine):
    """Startpage scraper (Google-backed, privacy-focused)."""

    def build_request(self, context: PageContext) -> RequestSpec:
        results_per_page = str(self.config.pagination.results_per_page)
        offset = self.page_offset(context.page)

        params: list[tuple[str, str]] = [
            ("q", quote_plus(context.query)),
            ("num", results_per_page),
        ]
        if offset is not None:
            params.append(("start", str(offset)))

        query_string = "&".join(f"{key}={value}" for key, value in params)
        url = f"{self.config.base_url}/do/dsearch?{query_string}"

        headers = build_header_map(
            {
                "User-Agent": context.user_agent,
                "Referer": GENERIC_REFERER,
                "Content-Type": FORM_CONTENT_TYPE,
                "Cookie": PREFERENCES_COOKIE,
            }
        )
        return RequestSpec(url=url, params=params, headers=headers, offset=offset)

    def build_result(self, title: Tag, link: Tag, description: Tag) -> SearchResult | None:
        # The displayed URL line is the destination; the anchor may point at a proxy
        url = inner_text(link)
        if not url:
            return None

        return SearchResult(
            title=inner_text(title),
            url=url,
            description=inner_text(description),
            engines={self.name},
        )
