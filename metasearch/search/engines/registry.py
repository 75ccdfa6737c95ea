"""
Engine Registry construction.

Maps engine names to their classes and builds the frozen registry of
enabled engines from settings.
"""

from __future__ import annotations

from metasearch.search.engine_config import (
    EngineConfig,
    engines_file_path,
    load_engine_configs,
)
from metasearch.search.engines.base import SearchEngine
from metasearch.search.provider import SearchEngineRegistry
from metasearch.utils.config import Settings
from metasearch.utils.logging import get_logger

logger = get_logger(__name__)

# Populated by __init__.py after all engine modules are imported
_engine_classes: dict[str, type[SearchEngine]] = {}

# Engines served from one host per language
LOCALIZED_ENGINES = {"wikipedia"}


def register_engine_class(engine_name: str, engine_class: type[SearchEngine]) -> None:
    """
    Register the class implementing an engine.

    Args:
        engine_name: Engine name as used in settings and engines.yaml.
        engine_class: Class (must inherit SearchEngine).
    """
    if not issubclass(engine_class, SearchEngine):
        raise TypeError("Engine must inherit from SearchEngine")

    _engine_classes[engine_name.lower()] = engine_class


def get_engine_class(engine_name: str) -> type[SearchEngine] | None:
    """Get the class implementing an engine, None if unknown."""
    return _engine_classes.get(engine_name.lower())


def get_available_engines() -> list[str]:
    """Names of engines with an implementation."""
    return sorted(_engine_classes)


def build_registry(
    settings: Settings,
    engine_configs: dict[str, EngineConfig] | None = None,
) -> SearchEngineRegistry:
    """
    Build the registry of enabled engines.

    Engines are registered in the order they appear in settings.search.engines.
    Localized engines get one instance per configured language.

    Args:
        settings: Application settings.
        engine_configs: Engine configurations. Loaded from engines.yaml if None.

    Returns:
        Frozen SearchEngineRegistry.

    Raises:
        ValueError: If an enabled engine has no implementation or configuration.
        ParserConfigError: If a configured selector is invalid.
    """
    if engine_configs is None:
        engine_configs = load_engine_configs(engines_file_path(settings))

    registry = SearchEngineRegistry()

    for engine_name in settings.search.enabled_engines():
        name_lower = engine_name.lower()

        engine_class = get_engine_class(name_lower)
        if engine_class is None:
            raise ValueError(
                f"No implementation for engine: {engine_name} "
                f"(available: {', '.join(get_available_engines())})"
            )

        config = engine_configs.get(name_lower)
        if config is None:
            raise ValueError(f"Engine {engine_name} not configured in engines file")

        if name_lower in LOCALIZED_ENGINES:
            for language in settings.search.wikipedia_languages:
                registry.register(engine_class(config, language=language))  # type: ignore[call-arg]
        else:
            registry.register(engine_class(config))

    registry.freeze()

    logger.info("Engine registry built", engines=registry.list_engines())
    return registry
