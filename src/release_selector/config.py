"""Configuration for the release selector.

All thresholds default to the values the promotion pipeline has always
used, so running without a config file reproduces the historical
behaviour. A YAML file may override any subset:

    selector:
      soak_days: 10
      fix_marker: "Fix"
    sources:
      repo: eqemu/server
      timeout_seconds: 5
    output:
      directory: dist
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from release_selector.errors import ConfigurationError


class SelectorConfig(BaseModel):
    """Heuristic thresholds used by the selector.

    Attributes:
        spacing_days: Releases published within this many days of the
                      previously considered one are treated as a cluster
        fallback_age_days: First release older than this becomes the
                           fallback stable candidate
        soak_days: Minimum age before a release may be recommended as stable
        fix_marker: Case-sensitive substring a changelog must contain
        strip_from_tag: Text removed from a tag before querying crash reports
    """

    spacing_days: float = Field(3, gt=0)
    fallback_age_days: float = Field(30, gt=0)
    soak_days: float = Field(7, gt=0)
    fix_marker: str = Field("Fix", min_length=1)
    strip_from_tag: str = "v"

    @property
    def spacing(self) -> timedelta:
        return timedelta(days=self.spacing_days)

    @property
    def fallback_age(self) -> timedelta:
        return timedelta(days=self.fallback_age_days)

    @property
    def soak_period(self) -> timedelta:
        return timedelta(days=self.soak_days)


class SourcesConfig(BaseModel):
    """Where releases and crash reports are fetched from."""

    repo: str = "eqemu/server"
    github_api_url: str = "https://api.github.com"
    crash_reports_url: str = "http://spire.akkadius.com"
    timeout_seconds: float = Field(10.0, gt=0)


class OutputConfig(BaseModel):
    """Where the pointer files are written."""

    directory: str = "bin"
    latest_filename: str = "latest.txt"
    stable_filename: str = "stable.txt"


class AppConfig(BaseModel):
    """Top-level configuration loaded from YAML."""

    selector: SelectorConfig = Field(default_factory=SelectorConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_config(path: str | Path | None) -> AppConfig:
    """Load and validate a YAML config file.

    Args:
        path: Path to the YAML configuration file, or None for defaults.

    Returns:
        A validated AppConfig. Returns defaults if the file doesn't exist.

    Raises:
        ConfigurationError: If the YAML content is invalid or fails validation.
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    if not config_path.exists():
        return AppConfig()

    try:
        raw = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config in {path}: {exc}") from exc
