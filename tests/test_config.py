"""Tests for YAML configuration loading.

Run with: pytest tests/test_config.py -v
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from release_selector.config import AppConfig, SelectorConfig, load_config
from release_selector.errors import ConfigurationError


class TestDefaults:
    def test_selector_defaults(self) -> None:
        config = SelectorConfig()
        assert config.spacing == timedelta(days=3)
        assert config.fallback_age == timedelta(days=30)
        assert config.soak_period == timedelta(days=7)
        assert config.fix_marker == "Fix"
        assert config.strip_from_tag == "v"

    def test_app_defaults(self) -> None:
        config = AppConfig()
        assert config.sources.repo == "eqemu/server"
        assert config.sources.timeout_seconds == 10.0
        assert config.output.directory == "bin"
        assert config.output.latest_filename == "latest.txt"
        assert config.output.stable_filename == "stable.txt"

    def test_non_positive_days_rejected(self) -> None:
        with pytest.raises(ValueError):
            SelectorConfig(soak_days=0)


class TestLoadConfig:
    def test_none_returns_defaults(self) -> None:
        assert load_config(None) == AppConfig()

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nope.yaml") == AppConfig()

    def test_empty_file_returns_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "selector.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_partial_override(self, tmp_path: Path) -> None:
        path = tmp_path / "selector.yaml"
        path.write_text(
            "selector:\n"
            "  soak_days: 10\n"
            "sources:\n"
            "  repo: myorg/server\n"
            "output:\n"
            "  directory: dist\n"
        )
        config = load_config(path)

        assert config.selector.soak_period == timedelta(days=10)
        assert config.selector.spacing_days == 3
        assert config.sources.repo == "myorg/server"
        assert config.output.directory == "dist"

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "selector.yaml"
        path.write_text("selector: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_invalid_values_raise(self, tmp_path: Path) -> None:
        path = tmp_path / "selector.yaml"
        path.write_text("selector:\n  spacing_days: -1\n")
        with pytest.raises(ConfigurationError, match="Invalid config"):
            load_config(path)
