"""
Engine Configuration.

Loads per-engine scraping configuration from config/engines.yaml.

Selectors, "no results" marker texts and pagination constants follow the
upstream markup, which changes without notice. They are kept as data so a
drifted engine can be repaired by editing the YAML file.

Configurations are built once when the engine registry is built and are
immutable afterwards; engines hold a reference to their own entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from metasearch.search.result_parser import compile_selector
from metasearch.utils.config import Settings, get_config_dir
from metasearch.utils.logging import get_logger

logger = get_logger(__name__)

SELECTOR_NAMES = ("no_result", "results", "title", "link", "description")


# =============================================================================
# Pydantic Schema Models
# =============================================================================


class SelectorSchema(BaseModel):
    """Schema for a single CSS selector configuration."""

    model_config = ConfigDict(extra="forbid")

    selector: str = Field(..., description="CSS selector string")
    diagnostic_message: str = Field(
        default="",
        description="Hint logged when the selector stops matching",
    )

    @field_validator("selector")
    @classmethod
    def validate_selector(cls, v: str) -> str:
        """Ensure selector is not empty."""
        if not v.strip():
            raise ValueError("Selector cannot be empty")
        return v.strip()


class PaginationSchema(BaseModel):
    """Schema for an engine's pagination rule."""

    model_config = ConfigDict(extra="forbid")

    results_per_page: int = Field(..., ge=1)
    page_base: int = Field(default=0, ge=0)
    omit_on_first_page: bool = Field(default=False)


class EngineSchema(BaseModel):
    """Schema for one engine section of engines.yaml."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(..., description="Engine host, may contain {language}")
    no_results_text: str | None = Field(
        default=None,
        description="Text the first no_result marker must contain",
    )
    pagination: PaginationSchema
    selectors: dict[str, SelectorSchema]

    @field_validator("selectors", mode="before")
    @classmethod
    def parse_selectors(cls, v: Any) -> dict[str, Any]:
        """Accept plain strings as shorthand for {selector: ...}."""
        if not isinstance(v, dict):
            raise ValueError("selectors must be a mapping")

        result: dict[str, Any] = {}
        for name, config in v.items():
            if isinstance(config, str):
                result[name] = {"selector": config}
            else:
                result[name] = config
        return result

    @field_validator("selectors")
    @classmethod
    def validate_selector_names(cls, v: dict[str, SelectorSchema]) -> dict[str, SelectorSchema]:
        """Ensure exactly the five parser selectors are configured."""
        missing = [name for name in SELECTOR_NAMES if name not in v]
        if missing:
            raise ValueError(f"Missing selectors: {', '.join(missing)}")
        unknown = sorted(set(v) - set(SELECTOR_NAMES))
        if unknown:
            raise ValueError(f"Unknown selectors: {', '.join(unknown)}")
        return v


# =============================================================================
# Resolved Configuration
# =============================================================================


@dataclass(frozen=True)
class ProviderConfig:
    """The five selectors an engine's parser is built from."""

    no_result: str
    results: str
    title: str
    link: str
    description: str

    def __post_init__(self) -> None:
        for name in SELECTOR_NAMES:
            compile_selector(name, getattr(self, name))


@dataclass(frozen=True)
class Pagination:
    """Maps a zero-based page index to the engine's offset parameter."""

    results_per_page: int
    page_base: int = 0
    omit_on_first_page: bool = False

    def offset(self, page: int) -> int | None:
        """
        Offset parameter value for a page.

        Args:
            page: Zero-based page index.

        Returns:
            results_per_page * page + page_base, or None when the engine's
            first page URL carries no offset.
        """
        if page < 0:
            raise ValueError(f"Page index must be non-negative, got {page}")
        if page == 0 and self.omit_on_first_page:
            return None
        return self.results_per_page * page + self.page_base


@dataclass(frozen=True)
class EngineConfig:
    """Resolved scraping configuration for one engine."""

    name: str
    base_url: str
    selectors: ProviderConfig
    pagination: Pagination
    no_results_text: str | None = None
    # (selector name, hint) pairs
    diagnostics: tuple[tuple[str, str], ...] = ()

    def host_for(self, language: str) -> str:
        """Engine host for a language (for engines with localized hosts)."""
        return self.base_url.replace("{language}", language)

    def get_diagnostic(self, selector_name: str) -> str:
        """Hint for a selector, empty if none configured."""
        return dict(self.diagnostics).get(selector_name, "")

    @classmethod
    def from_schema(cls, name: str, schema: EngineSchema) -> EngineConfig:
        """Resolve a validated schema into runtime configuration."""
        selectors = ProviderConfig(
            **{sel_name: schema.selectors[sel_name].selector for sel_name in SELECTOR_NAMES}
        )
        return cls(
            name=name,
            base_url=schema.base_url.rstrip("/"),
            selectors=selectors,
            pagination=Pagination(
                results_per_page=schema.pagination.results_per_page,
                page_base=schema.pagination.page_base,
                omit_on_first_page=schema.pagination.omit_on_first_page,
            ),
            no_results_text=schema.no_results_text,
            diagnostics=tuple(
                (sel_name, sel.diagnostic_message)
                for sel_name, sel in schema.selectors.items()
                if sel.diagnostic_message
            ),
        )


# =============================================================================
# Loading
# =============================================================================


def parse_engine_configs(data: dict[str, Any]) -> dict[str, EngineConfig]:
    """
    Build engine configurations from a parsed engines.yaml mapping.

    Args:
        data: Mapping of engine name to engine section.

    Returns:
        Engine configurations keyed by lower-cased engine name, in file order.

    Raises:
        pydantic.ValidationError: If a section does not match the schema.
        ParserConfigError: If a selector does not compile.
    """
    configs: dict[str, EngineConfig] = {}
    for name, section in data.items():
        if not isinstance(section, dict):
            raise ValueError(f"Engine section '{name}' must be a mapping")
        name_lower = str(name).lower()
        configs[name_lower] = EngineConfig.from_schema(name_lower, EngineSchema(**section))
    return configs


def load_engine_configs(path: Path | str) -> dict[str, EngineConfig]:
    """
    Load engine configurations from a YAML file.

    Args:
        path: Path to engines.yaml.

    Returns:
        Engine configurations keyed by engine name.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ParserConfigError: If a selector does not compile.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    configs = parse_engine_configs(data)

    logger.info(
        "Engine config loaded",
        path=str(path),
        engines=list(configs),
    )
    return configs


def engines_file_path(settings: Settings) -> Path:
    """Resolve the engines.yaml path from settings."""
    path = Path(settings.search.engines_file)
    if path.is_absolute():
        return path
    return get_config_dir() / path
