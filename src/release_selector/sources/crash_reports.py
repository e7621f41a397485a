"""Crash-report oracle backed by the Spire analytics API.

Crash reports are the go/no-go signal for stability: a version that any
server has reported a crash for is never recommended as stable. The
signal counted is the number of distinct servers, so one server crashing
repeatedly counts once.

Design notes:
- Same Protocol pattern as the release feed
- An empty (or null) result set means zero reporters, not an error
- No retries; a failed query aborts the run
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

import httpx
from pydantic import ValidationError

from release_selector.errors import OracleUnavailable
from release_selector.logging_config import get_logger
from release_selector.schemas import CrashReport

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class CrashReportOracleProtocol(Protocol):
    """Protocol for crash-report lookups."""

    async def error_count(self, version: str) -> int:
        """Count distinct servers that reported crashes for a version.

        Args:
            version: Normalized version string (e.g., "22.4.1")

        Returns:
            Number of distinct reporting servers
        """
        ...


def count_distinct_servers(reports: Iterable[CrashReport]) -> int:
    """Number of distinct server_name values across the reports."""
    return len({report.server_name for report in reports})


# ---------------------------------------------------------------------------
# Spire Implementation
# ---------------------------------------------------------------------------


class SpireCrashReportOracle:
    """Queries server crash reports from Spire's analytics endpoint.

    Usage:
        oracle = SpireCrashReportOracle()
        count = await oracle.error_count("22.4.1")
    """

    BASE_URL = "http://spire.akkadius.com"
    REPORTS_PATH = "/api/v1/analytics/server-crash-reports"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the oracle.

        Args:
            base_url: API root. Defaults to BASE_URL.
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url or self.BASE_URL
        self._timeout = timeout
        self._transport = transport

    async def error_count(self, version: str) -> int:
        """Fetch crash reports for a version and count distinct servers.

        Raises:
            OracleUnavailable: If the request fails or the payload can't be decoded
        """
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.get(self.REPORTS_PATH, params={"version": version})
                resp.raise_for_status()
                payload = resp.json()
            except httpx.HTTPError as exc:
                raise OracleUnavailable(f"get error count: {exc}") from exc
            except ValueError as exc:
                raise OracleUnavailable(f"decode error count: {exc}") from exc

        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise OracleUnavailable(
                f"decode error count: expected a JSON array, got {type(payload).__name__}"
            )

        try:
            reports = [CrashReport.model_validate(row) for row in payload]
        except ValidationError as exc:
            raise OracleUnavailable(f"decode error count: {exc}") from exc

        count = count_distinct_servers(reports)
        logger.debug("crash_reports_fetched", version=version, rows=len(reports), servers=count)
        return count


# ---------------------------------------------------------------------------
# Mock Implementation
# ---------------------------------------------------------------------------


class MockCrashReportOracle:
    """Mock oracle for testing.

    Returns predefined counts and records every version it was asked about.
    """

    def __init__(self, counts: dict[str, int] | None = None, default: int = 0) -> None:
        """Initialize with optional predefined counts.

        Args:
            counts: Mapping of version -> distinct server count
            default: Count returned for versions not in counts
        """
        self._counts = counts or {}
        self._default = default
        self.queries: list[str] = []

    async def error_count(self, version: str) -> int:
        self.queries.append(version)
        return self._counts.get(version, self._default)
