"""
Configuration management for metasearch.
Loads and validates settings from YAML files and environment variables.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field


class GeneralConfig(BaseModel):
    """General configuration."""

    model_config = ConfigDict(extra="forbid")

    version: str = "0.1.0"
    log_level: str = "INFO"
    logs_dir: str = "logs"
    log_to_file: bool = False


class SearchConfig(BaseModel):
    """Search dispatch configuration."""

    model_config = ConfigDict(extra="forbid")

    # Per-provider bound on a single fetch, in seconds
    request_timeout: float = Field(default=30.0, gt=0)
    # Upstream engines, in registration (merge) order
    engines: dict[str, bool] = Field(
        default_factory=lambda: {
            "mojeek": True,
            "startpage": True,
            "wikipedia": True,
            "yahoo": True,
        }
    )
    # One wikipedia provider instance per language
    wikipedia_languages: list[str] = Field(default_factory=lambda: ["en"])
    # Selector / pagination definitions, relative to the config dir
    engines_file: str = "engines.yaml"

    def enabled_engines(self) -> list[str]:
        """Names of enabled engines in configured order."""
        return [name for name, enabled in self.engines.items() if enabled]


class HttpConfig(BaseModel):
    """Shared HTTP client configuration."""

    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(default=30.0, gt=0)
    max_connections: int = Field(default=100, ge=1)
    max_keepalive_connections: int = Field(default=20, ge=0)
    follow_redirects: bool = True


class Settings(BaseModel):
    """Main settings container."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)


ENV_PREFIX = "METASEARCH_"
# Selects the directory, it is not a setting
_CONFIG_DIR_VAR = f"{ENV_PREFIX}CONFIG_DIR"


def _read_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML mapping; a missing or empty file yields {}."""
    if not path.is_file():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Return base updated recursively with override.

    Nested mappings are merged key by key, any other value in override
    replaces the one in base. Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _load_config_file(config_dir: Path, filename: str) -> dict[str, Any]:
    """Load a config file and apply its section of local.yaml.

    local.yaml is an untracked file holding machine-specific overrides,
    one top-level section per config file stem:

        settings:
          search:
            request_timeout: 5
            wikipedia_languages: [en, de]
    """
    config = _read_yaml(config_dir / filename)
    section = _read_yaml(config_dir / "local.yaml").get(Path(filename).stem)
    if section:
        config = _deep_merge(config, section)
    return config


def _parse_env_value(raw: str) -> bool | int | float | str:
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return float(raw) if "." in raw else int(raw)
    except ValueError:
        return raw


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply METASEARCH_* environment overrides in place.

    Double underscores separate nesting levels, so
    METASEARCH_SEARCH__ENGINES__YAHOO=false disables the yahoo engine.

    Args:
        config: Configuration dictionary.

    Returns:
        The same dictionary, updated.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX) or name == _CONFIG_DIR_VAR:
            continue

        *parents, leaf = name.removeprefix(ENV_PREFIX).lower().split("__")
        node = config
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = _parse_env_value(raw)

    return config


def get_project_root() -> Path:
    """Get the project root directory.

    Returns:
        Project root path.
    """
    # This file is at metasearch/utils/config.py
    return Path(__file__).parent.parent.parent


def get_config_dir() -> Path:
    """Get the configuration directory.

    Uses METASEARCH_CONFIG_DIR when set, otherwise <project root>/config.
    """
    configured = os.environ.get(_CONFIG_DIR_VAR)
    if configured:
        return Path(configured)
    return get_project_root() / "config"


def load_settings(config_dir: Path | None = None) -> Settings:
    """Load settings without caching.

    Settings are loaded from:
    1. Default values
    2. settings.yaml (with local.yaml overrides)
    3. Environment variables (highest priority)

    Args:
        config_dir: Configuration directory. Defaults to get_config_dir().

    Returns:
        Settings instance.
    """
    if config_dir is None:
        config_dir = get_config_dir()

    config = _load_config_file(config_dir, "settings.yaml")
    config = _apply_env_overrides(config)

    return Settings(**config)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get application settings (cached for the process lifetime)."""
    return load_settings()
