"""
Selector-driven Search Result Parser.

Extracts results from an engine's result page using five CSS selectors
instead of per-engine parsing code:

- no_result: marker element shown when the engine found nothing
- results: one element per result item
- title / link / description: looked up inside each result item

Selectors are compiled once with soupsieve when the parser is built, so a
broken selector fails at startup rather than on the first search.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, TypeVar

import soupsieve as sv
from bs4 import BeautifulSoup, Tag

if TYPE_CHECKING:
    from metasearch.search.engine_config import ProviderConfig

R = TypeVar("R")


class ParserConfigError(ValueError):
    """Raised when a selector is empty or not valid CSS."""

    def __init__(self, name: str, selector: str, reason: str):
        super().__init__(f"Invalid selector '{name}' ({selector!r}): {reason}")
        self.name = name
        self.selector = selector
        self.reason = reason


def compile_selector(name: str, selector: str) -> sv.SoupSieve:
    """Compile a CSS selector.

    Args:
        name: Selector role, used in the error message.
        selector: CSS selector text.

    Returns:
        Compiled selector.

    Raises:
        ParserConfigError: If the selector is empty or does not compile.
    """
    if not isinstance(selector, str) or not selector.strip():
        raise ParserConfigError(name, str(selector), "selector cannot be empty")

    try:
        return sv.compile(selector)
    except sv.SelectorSyntaxError as e:
        raise ParserConfigError(name, selector, str(e)) from e


def parse_document(html: str) -> BeautifulSoup:
    """Parse an HTML page into a document handle."""
    return BeautifulSoup(html, "html.parser")


def inner_text(element: Tag) -> str:
    """Text content of an element with whitespace runs collapsed."""
    return " ".join(element.get_text().split())


class SearchResultParser:
    """Extracts search results from a parsed page with configured selectors."""

    def __init__(
        self,
        no_result: str,
        results: str,
        title: str,
        link: str,
        description: str,
    ):
        """
        Compile the parser's selectors.

        Args:
            no_result: Selector of the "no results" marker.
            results: Selector of a single result item.
            title: Selector of the title, relative to a result item.
            link: Selector of the link, relative to a result item.
            description: Selector of the description, relative to a result item.

        Raises:
            ParserConfigError: If any selector is empty or invalid.
        """
        self._no_result = compile_selector("no_result", no_result)
        self._results = compile_selector("results", results)
        self._title = compile_selector("title", title)
        self._link = compile_selector("link", link)
        self._description = compile_selector("description", description)

    @classmethod
    def from_config(cls, config: ProviderConfig) -> SearchResultParser:
        """Build a parser from an engine's selector configuration."""
        return cls(
            no_result=config.no_result,
            results=config.results,
            title=config.title,
            link=config.link,
            description=config.description,
        )

    def find_no_result_markers(self, document: Tag) -> Iterator[Tag]:
        """
        Find "no results" marker elements.

        Returns a fresh generator on each call, so the document can be
        queried again.

        Args:
            document: Parsed page.

        Returns:
            Lazy iterator over marker elements in document order.
        """
        _ensure_document(document)
        return self._no_result.iselect(document)

    def count_result_items(self, document: Tag) -> int:
        """Number of elements matched by the result item selector."""
        _ensure_document(document)
        return len(self._results.select(document))

    def extract_results(
        self,
        document: Tag,
        construct: Callable[[Tag, Tag, Tag], R | None],
    ) -> list[R]:
        """
        Extract results from a parsed page.

        Items missing a title, link or description element are skipped, as is
        any item for which `construct` returns None.

        Args:
            document: Parsed page.
            construct: Builds a result from the (title, link, description)
                elements of one item, or returns None to skip it.

        Returns:
            Constructed results in document order.
        """
        _ensure_document(document)

        extracted: list[R] = []
        for item in self._results.iselect(document):
            title = self._title.select_one(item)
            link = self._link.select_one(item)
            description = self._description.select_one(item)

            if title is None or link is None or description is None:
                continue

            result = construct(title, link, description)
            if result is not None:
                extracted.append(result)

        return extracted


def _ensure_document(document: object) -> None:
    """Reject handles that are not parsed HTML."""
    if not isinstance(document, Tag):
        raise TypeError(f"Expected a parsed HTML document, got {type(document).__name__}")
