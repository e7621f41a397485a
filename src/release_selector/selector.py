"""Stable/unstable release classifier.

Walks a newest-first release list once and picks:
- the unstable release: the first non-prerelease seen
- the stable release: the first release that survives every filter below,
  or, if none does, the first release older than the fallback age

Per release, in feed order:
1. Prereleases are skipped without touching any state
2. The first non-prerelease is captured as the unstable release
3. Spacing: a release published within `spacing` of the previously
   considered one is part of a hot-fix cluster and is skipped
4. The first release older than `fallback_age` is captured as the fallback
5. Stability rules (soak period, changelog advertises a fix)
6. Crash reports: any server reporting a crash for the version rejects it
7. Otherwise the release is stable and the scan stops

The crash-report oracle is only asked about releases that passed every
cheaper check, and never again after a stable release is found.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from release_selector.config import SelectorConfig
from release_selector.errors import NoReleasesFound
from release_selector.logging_config import get_logger
from release_selector.schemas import Release, SelectionResult, SkippedRelease
from release_selector.sources.crash_reports import CrashReportOracleProtocol

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Selection State
# ---------------------------------------------------------------------------


@dataclass
class SelectionState:
    """Mutable state of one scan. Created per run, never shared.

    Attributes:
        last_considered: Publish time of the last release that got past
                         the prerelease filter
        unstable: First non-prerelease release (write-once)
        fallback: First release older than the fallback age (write-once)
        stable: Release chosen as stable; setting it ends the scan
        skipped: Audit trail of rejected releases
    """

    last_considered: datetime | None = None
    unstable: Release | None = None
    fallback: Release | None = None
    stable: Release | None = None
    skipped: list[SkippedRelease] = field(default_factory=list)

    def capture_unstable(self, release: Release) -> None:
        if self.unstable is None:
            self.unstable = release

    def capture_fallback(self, release: Release) -> bool:
        if self.fallback is not None:
            return False
        self.fallback = release
        return True

    def skip(self, release: Release, rule: str, reason: str) -> None:
        self.skipped.append(SkippedRelease(tag=release.tag_name, rule=rule, reason=reason))
        logger.info("release_skipped", tag=release.tag_name, rule=rule, reason=reason)


# ---------------------------------------------------------------------------
# Stability Rules
# ---------------------------------------------------------------------------

# A rule returns a rejection reason, or None if the release passes.
StabilityRule = Callable[[Release, datetime, datetime, SelectorConfig], str | None]


def rule_soak_period(
    release: Release, published: datetime, now: datetime, config: SelectorConfig
) -> str | None:
    """RULE: A release must have been public for the soak period."""
    age = now - published
    if age < config.soak_period:
        return f"too new ({age.days}d old, needs {config.soak_days:g}d)"
    return None


def rule_no_fixes(
    release: Release, published: datetime, now: datetime, config: SelectorConfig
) -> str | None:
    """RULE: The changelog must advertise at least one fix."""
    if config.fix_marker not in release.body:
        return f"changelog does not mention {config.fix_marker!r}"
    return None


# Applied in order; the first rejection wins.
DEFAULT_RULES: list[tuple[str, StabilityRule]] = [
    ("soak_period", rule_soak_period),
    ("no_fixes", rule_no_fixes),
]


def normalize_tag(tag: str, strip: str = "v") -> str:
    """Turn a release tag into the version string crash reports are filed under.

    Every occurrence of `strip` is removed, not just a leading one.
    """
    if not strip:
        return tag
    return tag.replace(strip, "")


# ---------------------------------------------------------------------------
# Selector
# ---------------------------------------------------------------------------


class ReleaseSelector:
    """Classifies a release history into unstable and stable picks.

    Stateless between calls; each select() owns a fresh SelectionState, so
    one selector may serve concurrent runs.

    Usage:
        selector = ReleaseSelector()
        result = await selector.select(releases, oracle)
    """

    def __init__(
        self,
        config: SelectorConfig | None = None,
        rules: list[tuple[str, StabilityRule]] | None = None,
    ) -> None:
        self.config = config or SelectorConfig()
        self.rules = rules if rules is not None else DEFAULT_RULES

    async def select(
        self,
        releases: Sequence[Release],
        oracle: CrashReportOracleProtocol,
        now: datetime | None = None,
    ) -> SelectionResult:
        """Run one scan over `releases` (newest first).

        Args:
            releases: Release history, ordered by publish time descending
            oracle: Crash-report source, queried lazily
            now: Reference time for age checks. Defaults to the current UTC
                time; a naive datetime is taken to be UTC.

        Returns:
            The unstable and stable tags plus the skip trail

        Raises:
            MalformedTimestamp: If a visited release's timestamp fails to parse
            OracleUnavailable: If a crash-report query fails
            NoReleasesFound: If no stable or fallback candidate exists, or
                the history holds no non-prerelease release at all
        """
        now = now or datetime.now(UTC)
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        state = SelectionState()

        for release in releases:
            if await self._visit(release, now, oracle, state):
                break

        return self._finish(state)

    async def _visit(
        self,
        release: Release,
        now: datetime,
        oracle: CrashReportOracleProtocol,
        state: SelectionState,
    ) -> bool:
        """Process one release. Returns True when the scan should stop."""
        cfg = self.config

        if release.prerelease:
            state.skip(release, "prerelease", "flagged as prerelease")
            return False

        state.capture_unstable(release)
        published = release.published_time()

        previous = state.last_considered
        too_close = previous is not None and published > previous - cfg.spacing

        if not too_close and now - published > cfg.fallback_age:
            if state.capture_fallback(release):
                logger.info("fallback_captured", tag=release.tag_name)

        state.last_considered = published
        if too_close:
            gap = previous - published
            state.skip(
                release,
                "spacing",
                f"published {gap} before the previous release "
                f"(minimum gap {cfg.spacing_days:g}d)",
            )
            return False

        logger.debug("release_checking", tag=release.tag_name)
        for rule_name, rule in self.rules:
            reason = rule(release, published, now, cfg)
            if reason is not None:
                state.skip(release, rule_name, reason)
                return False

        version = normalize_tag(release.tag_name, cfg.strip_from_tag)
        errors = await oracle.error_count(version)
        if errors > 0:
            state.skip(
                release,
                "crash_reports",
                f"{errors} server(s) reported crashes for {version}",
            )
            return False

        state.stable = release
        logger.info("stable_selected", tag=release.tag_name)
        return True

    def _finish(self, state: SelectionState) -> SelectionResult:
        used_fallback = False
        stable = state.stable
        if stable is None:
            if state.fallback is None:
                raise NoReleasesFound(
                    "no release passed the stability checks and none is older "
                    f"than {self.config.fallback_age_days:g} days"
                )
            logger.info("fallback_used", tag=state.fallback.tag_name)
            stable = state.fallback
            used_fallback = True

        if state.unstable is None:
            raise NoReleasesFound("release history holds no non-prerelease release")

        return SelectionResult(
            unstable_tag=state.unstable.tag_name,
            stable_tag=stable.tag_name,
            used_fallback=used_fallback,
            skipped=state.skipped,
        )


async def select_releases(
    releases: Sequence[Release],
    oracle: CrashReportOracleProtocol,
    now: datetime | None = None,
    config: SelectorConfig | None = None,
) -> SelectionResult:
    """Convenience wrapper: run a default-configured selector once."""
    return await ReleaseSelector(config).select(releases, oracle, now)
