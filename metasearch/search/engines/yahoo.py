"""
Yahoo search engine.
"""

from __future__ import annotations

import re
from urllib.parse import quote_plus, unquote

from bs4 import Tag

from metasearch.search.engines.base import (
    FORM_CONTENT_TYPE,
    GENERIC_REFERER,
    SearchEngine,
    build_header_map,
)
from metasearch.search.provider import PageContext, RequestSpec, SearchResult
from metasearch.search.result_parser import inner_text

NO_TITLE = "No Title Found"
NO_LINK = "No Link Found"

# r.search.yahoo.com/.../RU=<percent-encoded destination>/RK=.../RS=...
_REDIRECT_TARGET_RE = re.compile(r"/RU=([^/]+)/R[KS]=")


def clean_yahoo_url(url: str) -> str:
    """Unwrap Yahoo's click-tracking redirect to the destination URL."""
    match = _REDIRECT_TARGET_RE.search(url)
    if match:
        return unquote(match.group(1))
    return url


class Yahoo(SearchEngine):
    """Yahoo scraper."""

    def build_request(self, context: PageContext) -> RequestSpec:
        offset = self.page_offset(context.page)

        params: list[tuple[str, str]] = [("p", quote_plus(context.query))]
        if offset is not None:
            params.append(("b", str(offset)))

        query_string = "&".join(f"{key}={value}" for key, value in params)
        url = f"{self.config.base_url}/search/?{query_string}"

        headers = build_header_map(
            {
                "User-Agent": context.user_agent,
                "Referer": GENERIC_REFERER,
                "Content-Type": FORM_CONTENT_TYPE,
                "Cookie": "kl=wt-wt",
            }
        )
        return RequestSpec(url=url, params=params, headers=headers, offset=offset)

    def build_result(self, title: Tag, link: Tag, description: Tag) -> SearchResult | None:
        # The anchor text carries the display URL; the title is in aria-label
        label = title.get("aria-label")
        href = link.get("href")

        return SearchResult(
            title=label if isinstance(label, str) and label.strip() else NO_TITLE,
            url=clean_yahoo_url(href) if isinstance(href, str) else NO_LINK,
            description=inner_text(description),
            engines={self.name},
        )
