"""Pydantic models for the data flowing through a selection run.

Release and CrashReport mirror the JSON objects returned by the two upstream
APIs, so payloads can be validated straight into them. SelectionResult is
what the selector hands to the output sink and what the CLI prints with
--json.

Key design decisions:
- Release keeps published_at as the raw string and parses it on demand,
  so ReleaseSelector.select never parses prereleases or releases after
  the stable pick. GitHubReleaseFeed still parses every timestamp when it
  checks the feed order, so on that path any malformed value fails the run
- Nullable text fields from GitHub (name, body) are coerced to ""
- Unknown keys in upstream payloads are ignored
"""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from release_selector.errors import MalformedTimestamp

# date "T" time, optional fraction, then "Z" or a numeric offset
RFC3339_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})"
)

# ---------------------------------------------------------------------------
# Input Schemas
# ---------------------------------------------------------------------------


class Release(BaseModel):
    """One published release of the monitored project.

    Attributes:
        name: Display name of the release
        tag_name: Version tag (e.g., "v22.4.1"), unique within a feed
        published_at: RFC 3339 publish timestamp as returned by the API
        prerelease: Whether the release is flagged as not production-ready
        body: Changelog text
    """

    name: str = Field("", description="Release display name")
    tag_name: str = Field(..., min_length=1, description="Version tag")
    published_at: str = Field(..., description="RFC 3339 publish timestamp")
    prerelease: bool = Field(False, description="Prerelease flag")
    body: str = Field("", description="Changelog text")

    @field_validator("name", "body", mode="before")
    @classmethod
    def null_to_empty(cls, value: str | None) -> str:
        """GitHub sends null for releases without a name or notes."""
        return value or ""

    def published_time(self) -> datetime:
        """Parse published_at into a timezone-aware datetime.

        Raises:
            MalformedTimestamp: If the value is not an RFC 3339 date-time
                (full date, "T", full time, then "Z" or a numeric offset)
        """
        if not RFC3339_RE.fullmatch(self.published_at):
            raise MalformedTimestamp(
                f"{self.tag_name}: published_at {self.published_at!r} "
                "is not an RFC 3339 timestamp"
            )
        try:
            published = datetime.fromisoformat(self.published_at)
        except ValueError as exc:
            raise MalformedTimestamp(
                f"{self.tag_name}: cannot parse published_at "
                f"{self.published_at!r}"
            ) from exc
        return published


class CrashReport(BaseModel):
    """One row of the server crash-report dataset.

    Only server_name is used; the other columns are kept for logging.
    """

    id: int = 0
    server_name: str = ""
    server_short_name: str = ""
    server_version: str = ""

    @field_validator("server_name", "server_short_name", "server_version", mode="before")
    @classmethod
    def null_to_empty(cls, value: str | None) -> str:
        return value or ""


# ---------------------------------------------------------------------------
# Output Schemas
# ---------------------------------------------------------------------------


class SkippedRelease(BaseModel):
    """A release the scan passed over, and the rule that rejected it.

    Attributes:
        tag: The skipped release's tag
        rule: Short rule name (prerelease, spacing, soak_period,
              no_fixes, crash_reports)
        reason: Human-readable explanation
    """

    tag: str
    rule: str
    reason: str


class SelectionResult(BaseModel):
    """Outcome of one selection run.

    Attributes:
        unstable_tag: Tag of the newest non-prerelease release
        stable_tag: Tag of the release recommended as stable
        used_fallback: True when no release passed every stability check
                       and the stable tag is the 30-day fallback
        skipped: Every release passed over before the scan stopped
    """

    unstable_tag: str = Field(..., min_length=1)
    stable_tag: str = Field(..., min_length=1)
    used_fallback: bool = False
    skipped: list[SkippedRelease] = Field(default_factory=list)
