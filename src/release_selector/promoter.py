"""Orchestrator for a release promotion run.

This module ties together all the components:
- Release history (sources/releases.py)
- Crash reports (sources/crash_reports.py)
- Classification (selector.py)
- Pointer files (sink.py)

A run follows this flow:
1. Fetch the release history, newest first
2. Classify it into unstable and stable picks
3. Write the two pointer files
4. Return the SelectionResult

Nothing is written unless every step succeeds.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from datetime import datetime

from release_selector.config import AppConfig, load_config
from release_selector.errors import ReleaseSelectorError
from release_selector.logging_config import bind_run_context, get_logger, setup_logging
from release_selector.schemas import SelectionResult
from release_selector.selector import ReleaseSelector
from release_selector.sink import MemorySink, OutputSinkProtocol, PointerFileSink
from release_selector.sources.crash_reports import (
    CrashReportOracleProtocol,
    SpireCrashReportOracle,
)
from release_selector.sources.releases import GitHubReleaseFeed, ReleaseFeedProtocol

logger = get_logger(__name__)


class ReleasePromoter:
    """Runs the fetch -> select -> write pipeline.

    Collaborators not passed in are built from the config.

    Usage:
        promoter = ReleasePromoter(load_config("selector.yaml"))
        result = await promoter.run()
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        feed: ReleaseFeedProtocol | None = None,
        oracle: CrashReportOracleProtocol | None = None,
        sink: OutputSinkProtocol | None = None,
    ) -> None:
        self.config = config or AppConfig()
        sources = self.config.sources
        output = self.config.output

        self.feed = feed or GitHubReleaseFeed(
            repo=sources.repo,
            base_url=sources.github_api_url,
            timeout=sources.timeout_seconds,
        )
        self.oracle = oracle or SpireCrashReportOracle(
            base_url=sources.crash_reports_url,
            timeout=sources.timeout_seconds,
        )
        self.sink = sink or PointerFileSink(
            output_dir=output.directory,
            latest_filename=output.latest_filename,
            stable_filename=output.stable_filename,
        )
        self.selector = ReleaseSelector(self.config.selector)

    async def run(self, now: datetime | None = None) -> SelectionResult:
        """Fetch, classify and persist.

        Args:
            now: Reference time for age checks. Defaults to the current UTC time.

        Returns:
            The selection result that was written

        Raises:
            ReleaseSelectorError: Any feed, timestamp, oracle,
                no-candidate or output failure, unchanged
        """
        bind_run_context(repo=self.config.sources.repo)
        logger.info("run_started")
        try:
            releases = await self.feed.fetch()
            result = await self.selector.select(releases, self.oracle, now)
            self.sink.write(result)
        except Exception as e:
            logger.error(
                "run_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        logger.info(
            "run_complete",
            unstable=result.unstable_tag,
            stable=result.stable_tag,
            used_fallback=result.used_fallback,
        )
        return result


# ---------------------------------------------------------------------------
# CLI Entry Point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-selector",
        description="Pick the latest and stable releases and write pointer files",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=os.environ.get("RELEASE_SELECTOR_CONFIG"),
        help="Path to YAML config (defaults to $RELEASE_SELECTOR_CONFIG)",
    )
    parser.add_argument("--repo", type=str, help="GitHub repository (owner/name)")
    parser.add_argument("--output-dir", "-o", type=str, help="Directory for pointer files")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Select releases but do not write pointer files",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full selection result as JSON",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Usage:
        release-selector --config selector.yaml
        release-selector --repo eqemu/server --dry-run --json

    Returns:
        Process exit code: 0 on success, 1 on any selection failure
    """
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        config = load_config(args.config)
    except ReleaseSelectorError as e:
        print(f"Error: {e}")
        return 1

    if args.repo:
        config.sources.repo = args.repo
    if args.output_dir:
        config.output.directory = args.output_dir

    sink = MemorySink() if args.dry_run else None
    promoter = ReleasePromoter(config, sink=sink)

    try:
        result = asyncio.run(promoter.run())
    except ReleaseSelectorError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print("Latest unstable release:", result.unstable_tag)
        print("Latest stable release:", result.stable_tag)
    return 0


if __name__ == "__main__":
    sys.exit(main())
