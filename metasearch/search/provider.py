"""
Search engine abstraction layer for metasearch.

Defines the common result shape, the per-request context handed to engines,
the engine error taxonomy and the registry of enabled engines.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from metasearch.utils.logging import get_logger

if TYPE_CHECKING:
    from metasearch.search.engines.base import SearchEngine

logger = get_logger(__name__)


# ============================================================================
# Engine Errors
# ============================================================================


class ProviderError(Exception):
    """Base exception for a single engine's search failure."""

    def __init__(self, message: str, *, engine: str | None = None):
        super().__init__(message)
        self.message = message
        self.engine = engine


class EmptyResultSet(ProviderError):
    """The engine explicitly reported that nothing matched the query."""

    def __init__(self, engine: str | None = None):
        super().__init__(
            f"No results from {engine}" if engine else "No results",
            engine=engine,
        )


class UnexpectedError(ProviderError):
    """Transport, header or parse failure while querying an engine.

    The lower-level cause is chained as __cause__.
    """

    def __init__(self, context: str, *, engine: str | None = None):
        super().__init__(context, engine=engine)
        self.context = context


# ============================================================================
# Pydantic Models
# ============================================================================


class SearchResult(BaseModel):
    """
    Normalized search result from one or more engines.

    Fields:
    - title: Result title
    - url: Result URL as reported by the engine
    - description: Text snippet
    - engines: Tags of every engine that returned this result
    """

    model_config = ConfigDict(frozen=False, extra="forbid")

    title: str = Field(..., description="Result title")
    url: str = Field(..., description="Result URL")
    description: str = Field(..., description="Text snippet/content preview")
    engines: set[str] = Field(..., description="Engines that returned this result")

    @field_validator("title", "url", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("engines")
    @classmethod
    def validate_engines(cls, v: set[str]) -> set[str]:
        """Ensure at least one engine tag."""
        if not v:
            raise ValueError("A search result needs at least one engine tag")
        return v

    def add_engines(self, engines: Iterable[str]) -> None:
        """Add engine tags (used when merging duplicates)."""
        self.engines |= set(engines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "engines": sorted(self.engines),
        }


class PageContext(BaseModel):
    """
    Read-only context of one incoming search request.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    query: str = Field(..., description="Query text as typed by the user")
    page: int = Field(default=0, ge=0, description="Zero-based page index")
    safe_search: int = Field(default=0, ge=0, le=2, description="Safe search level")
    user_agent: str = Field(..., description="User agent sent upstream")


@dataclass
class RequestSpec:
    """A fully built upstream request."""

    url: str
    params: list[tuple[str, str]] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    offset: int | None = None


class EngineStatus(str, Enum):
    """Outcome of one engine within a dispatch."""

    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"
    TIMEOUT = "timeout"


# Severity reported to callers for messaging, per outcome
_STATUS_SEVERITY = {
    EngineStatus.EMPTY: "info",
    EngineStatus.TIMEOUT: "warning",
    EngineStatus.ERROR: "error",
}


class EngineOutcome(BaseModel):
    """What happened to one engine during a dispatch."""

    model_config = ConfigDict(frozen=True)

    engine: str = Field(..., description="Engine tag")
    status: EngineStatus = Field(..., description="Outcome status")
    result_count: int = Field(default=0, ge=0, description="Results extracted")
    error: str | None = Field(default=None, description="Error message if failed")
    elapsed_ms: float = Field(default=0.0, ge=0.0, description="Time spent in milliseconds")

    @property
    def failed(self) -> bool:
        """True for errors and timeouts (not for explicit empty results)."""
        return self.status in (EngineStatus.ERROR, EngineStatus.TIMEOUT)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "engine": self.engine,
            "status": self.status.value,
            "result_count": self.result_count,
            "error": self.error,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


class DispatchResponse(BaseModel):
    """
    Merged response of a dispatch over all enabled engines.
    """

    model_config = ConfigDict(frozen=False)

    query: str = Field(..., description="Original query")
    page: int = Field(default=0, ge=0, description="Zero-based page index")
    results: list[SearchResult] = Field(default_factory=list, description="Merged results")
    outcomes: list[EngineOutcome] = Field(
        default_factory=list, description="Per-engine outcomes in registration order"
    )
    error: str | None = Field(default=None, description="Set when every engine failed")
    elapsed_ms: float = Field(default=0.0, ge=0.0, description="Total dispatch time")

    @property
    def ok(self) -> bool:
        """True unless every engine failed."""
        return self.error is None

    @property
    def no_results(self) -> bool:
        """True when every engine explicitly reported an empty result set."""
        return bool(self.outcomes) and all(
            outcome.status == EngineStatus.EMPTY for outcome in self.outcomes
        )

    @property
    def engine_errors(self) -> list[dict[str, str]]:
        """Engines that did not contribute results, with severity for messaging."""
        return [
            {
                "engine": outcome.engine,
                "error": outcome.error or outcome.status.value,
                "severity": _STATUS_SEVERITY[outcome.status],
            }
            for outcome in self.outcomes
            if outcome.status != EngineStatus.OK
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "query": self.query,
            "page": self.page,
            "ok": self.ok,
            "no_results": self.no_results,
            "error": self.error,
            "results": [r.to_dict() for r in self.results],
            "engines": [o.to_dict() for o in self.outcomes],
            "engine_errors": self.engine_errors,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


# ============================================================================
# Engine Registry
# ============================================================================


class SearchEngineRegistry:
    """
    Ordered registry of enabled search engines.

    Built once at startup and then frozen; registration order is the merge
    order of dispatched results.

    Example usage:
        registry = SearchEngineRegistry()
        registry.register(Mojeek(configs["mojeek"]))
        registry.register(Wikipedia(configs["wikipedia"], language="de"))
        registry.freeze()
    """

    def __init__(self) -> None:
        self._engines: dict[str, SearchEngine] = {}
        self._frozen = False

    def register(self, engine: SearchEngine) -> None:
        """
        Register a search engine.

        Args:
            engine: Engine instance to register.

        Raises:
            RuntimeError: If the registry is frozen.
            ValueError: If an engine with the same tag is already registered.
        """
        if self._frozen:
            raise RuntimeError("Engine registry is frozen")

        name = engine.name.lower()
        if name in self._engines:
            raise ValueError(f"Engine '{name}' already registered")

        self._engines[name] = engine
        logger.info("Search engine registered", engine=name)

    def freeze(self) -> None:
        """Disallow further registration."""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> SearchEngine | None:
        """
        Get an engine by tag.

        Args:
            name: Engine tag (case-insensitive).

        Returns:
            Engine instance or None if not registered.
        """
        return self._engines.get(name.lower())

    def list_engines(self) -> list[str]:
        """Registered engine tags in registration order."""
        return list(self._engines)

    def __iter__(self) -> Iterator[SearchEngine]:
        return iter(self._engines.values())

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._engines
