"""GitHub release feed.

This module fetches the release list of a repository from GitHub's REST
API and decodes it into Release objects, newest first.

Design notes:
- Uses httpx for async HTTP requests
- Fetches a single page, unauthenticated
- Uses a Protocol so the selector doesn't depend on the concrete
  implementation (makes testing with mocks easy)
- The selector's spacing and age logic assume newest-first order, so the
  feed checks it on ingestion and re-sorts if GitHub disagrees

GitHub API docs: https://docs.github.com/en/rest/releases/releases
"""

from __future__ import annotations

from typing import Protocol

import httpx
from pydantic import ValidationError

from release_selector.errors import FeedUnavailable
from release_selector.logging_config import get_logger
from release_selector.schemas import Release

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class ReleaseFeedProtocol(Protocol):
    """Protocol defining the interface for release history fetching."""

    async def fetch(self) -> list[Release]:
        """Fetch the release history, newest first.

        Returns:
            Releases ordered by published_at descending
        """
        ...


def order_newest_first(releases: list[Release]) -> list[Release]:
    """Return releases ordered by publish time, newest first.

    Every timestamp is parsed, so a malformed one fails the run here
    rather than halfway through a scan. A feed that is already ordered is
    returned as-is; otherwise a stable sort is applied and a warning logged.

    Raises:
        MalformedTimestamp: If any published_at fails to parse
    """
    times = [release.published_time() for release in releases]
    if all(newer >= older for newer, older in zip(times, times[1:])):
        return list(releases)

    logger.warning("feed_reordered", releases=len(releases))
    ordered = sorted(zip(times, releases), key=lambda pair: pair[0], reverse=True)
    return [release for _, release in ordered]


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class GitHubReleaseFeed:
    """Release feed backed by the GitHub releases API.

    Usage:
        feed = GitHubReleaseFeed(repo="eqemu/server")
        releases = await feed.fetch()
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        repo: str = "eqemu/server",
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the feed.

        Args:
            repo: Repository in "owner/name" format
            base_url: API root. Defaults to BASE_URL.
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.repo = repo
        self._base_url = base_url or self.BASE_URL
        self._timeout = timeout
        self._transport = transport
        self._headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def fetch(self) -> list[Release]:
        """Fetch the first page of releases for the repository.

        Returns:
            Releases ordered newest first

        Raises:
            FeedUnavailable: If the request fails or the payload can't be decoded
            MalformedTimestamp: If a release carries an unparseable timestamp
        """
        async with httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.get(f"/repos/{self.repo}/releases")
                resp.raise_for_status()
                payload = resp.json()
            except httpx.HTTPError as exc:
                raise FeedUnavailable(f"get releases: {exc}") from exc
            except ValueError as exc:
                raise FeedUnavailable(f"decode releases: {exc}") from exc

        if not isinstance(payload, list):
            raise FeedUnavailable(
                f"decode releases: expected a JSON array, got {type(payload).__name__}"
            )

        try:
            releases = [Release.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise FeedUnavailable(f"decode releases: {exc}") from exc

        logger.info("feed_fetched", repo=self.repo, releases=len(releases))
        return order_newest_first(releases)


# ---------------------------------------------------------------------------
# Mock Implementation (for testing)
# ---------------------------------------------------------------------------


class MockReleaseFeed:
    """Mock feed that returns predefined releases.

    Use this in tests and local development when you don't want to hit
    the real GitHub API. The list is returned unchanged, in the given order.
    """

    def __init__(self, releases: list[Release] | list[dict] | None = None) -> None:
        """Initialize with optional predefined releases.

        Args:
            releases: Release objects or raw GitHub-style dicts
        """
        self._releases = [
            Release.model_validate(item) for item in (releases or [])
        ]

    async def fetch(self) -> list[Release]:
        return list(self._releases)
