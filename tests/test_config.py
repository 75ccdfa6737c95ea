"""
Tests for settings loading.

Covers settings.yaml parsing, local.yaml overrides and METASEARCH_*
environment overrides.
"""

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

pytestmark = pytest.mark.unit

from metasearch.utils.config import (
    SearchConfig,
    Settings,
    _apply_env_overrides,
    _deep_merge,
    get_config_dir,
    get_settings,
    load_settings,
)

SETTINGS_YAML = {
    "general": {"log_level": "WARNING"},
    "search": {
        "request_timeout": 10,
        "engines": {"mojeek": True, "startpage": False, "wikipedia": True, "yahoo": True},
        "wikipedia_languages": ["en", "de"],
    },
    "http": {"timeout": 15},
}


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch) -> Path:
    """Config dir with a settings.yaml and no METASEARCH_* overrides."""
    for key in list(os.environ):
        if key.startswith("METASEARCH_"):
            monkeypatch.delenv(key)
    (tmp_path / "settings.yaml").write_text(yaml.safe_dump(SETTINGS_YAML), encoding="utf-8")
    return tmp_path


class TestLoadSettings:
    """Tests for load_settings."""

    def test_loads_yaml(self, config_dir: Path):
        settings = load_settings(config_dir)

        assert settings.general.log_level == "WARNING"
        assert settings.search.request_timeout == 10.0
        assert settings.search.wikipedia_languages == ["en", "de"]
        assert settings.http.timeout == 15.0

    def test_enabled_engines_in_file_order(self, config_dir: Path):
        settings = load_settings(config_dir)
        assert settings.search.enabled_engines() == ["mojeek", "wikipedia", "yahoo"]

    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("METASEARCH_GENERAL__LOG_LEVEL", raising=False)
        settings = load_settings(tmp_path)

        assert settings == Settings()
        assert settings.search.enabled_engines() == ["mojeek", "startpage", "wikipedia", "yahoo"]

    def test_local_override(self, config_dir: Path):
        (config_dir / "local.yaml").write_text(
            yaml.safe_dump({"settings": {"search": {"request_timeout": 3}}}),
            encoding="utf-8",
        )

        settings = load_settings(config_dir)

        assert settings.search.request_timeout == 3.0
        # Untouched keys keep the settings.yaml values
        assert settings.search.wikipedia_languages == ["en", "de"]

    def test_env_override(self, config_dir: Path, monkeypatch):
        monkeypatch.setenv("METASEARCH_SEARCH__REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("METASEARCH_SEARCH__ENGINES__YAHOO", "false")
        monkeypatch.setenv("METASEARCH_GENERAL__LOG_LEVEL", "DEBUG")

        settings = load_settings(config_dir)

        assert settings.search.request_timeout == 2.5
        assert settings.search.engines["yahoo"] is False
        assert settings.general.log_level == "DEBUG"

    def test_config_dir_variable_is_not_a_setting(self, config_dir: Path, monkeypatch):
        monkeypatch.setenv("METASEARCH_CONFIG_DIR", str(config_dir))
        settings = load_settings()
        assert settings.general.log_level == "WARNING"

    def test_invalid_timeout(self, config_dir: Path, monkeypatch):
        monkeypatch.setenv("METASEARCH_SEARCH__REQUEST_TIMEOUT", "0")
        with pytest.raises(ValidationError):
            load_settings(config_dir)

    def test_unknown_key_rejected(self, config_dir: Path, monkeypatch):
        monkeypatch.setenv("METASEARCH_SEARCH__RESULTS_PER_QUERY", "5")
        with pytest.raises(ValidationError):
            load_settings(config_dir)


class TestHelpers:
    """Tests for config helpers."""

    def test_deep_merge(self):
        base = {"search": {"request_timeout": 30, "engines": {"yahoo": True}}, "http": {"timeout": 30}}
        override = {"search": {"engines": {"yahoo": False}}}

        merged = _deep_merge(base, override)

        assert merged == {
            "search": {"request_timeout": 30, "engines": {"yahoo": False}},
            "http": {"timeout": 30},
        }
        assert base["search"]["engines"]["yahoo"] is True

    def test_env_value_types(self, monkeypatch):
        monkeypatch.setenv("METASEARCH_HTTP__MAX_CONNECTIONS", "10")
        monkeypatch.setenv("METASEARCH_HTTP__FOLLOW_REDIRECTS", "False")
        monkeypatch.setenv("METASEARCH_GENERAL__LOGS_DIR", "var/log")

        config = _apply_env_overrides({})

        assert config["http"]["max_connections"] == 10
        assert config["http"]["follow_redirects"] is False
        assert config["general"]["logs_dir"] == "var/log"

    def test_get_config_dir_from_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("METASEARCH_CONFIG_DIR", str(tmp_path))
        assert get_config_dir() == tmp_path

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_search_config_defaults(self):
        config = SearchConfig()
        assert config.request_timeout == 30.0
        assert config.engines_file == "engines.yaml"
