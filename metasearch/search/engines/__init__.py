"""
Upstream search engines.

Each engine scrapes one provider's HTML result page with the selectors from
config/engines.yaml and returns normalized SearchResult objects.
"""

from metasearch.search.engines.base import SearchEngine, build_header_map
from metasearch.search.engines.mojeek import Mojeek
from metasearch.search.engines.registry import (
    build_registry,
    get_available_engines,
    get_engine_class,
    register_engine_class,
)
from metasearch.search.engines.startpage import Startpage
from metasearch.search.engines.wikipedia import Wikipedia
from metasearch.search.engines.yahoo import Yahoo

# Register all engines
register_engine_class("mojeek", Mojeek)
register_engine_class("startpage", Startpage)
register_engine_class("wikipedia", Wikipedia)
register_engine_class("yahoo", Yahoo)

__all__ = [
    "SearchEngine",
    "build_header_map",
    "Mojeek",
    "Startpage",
    "Wikipedia",
    "Yahoo",
    "build_registry",
    "get_available_engines",
    "get_engine_class",
    "register_engine_class",
]
