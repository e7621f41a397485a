"""Exception classes for the release selector.

Centralized location for all custom exceptions to avoid circular imports.
Every run-terminating failure derives from ReleaseSelectorError so the CLI
can report it and exit non-zero.
"""


class ReleaseSelectorError(Exception):
    """Base exception for all release selector failures."""
    pass


class FeedUnavailable(ReleaseSelectorError):
    """The release feed could not be retrieved or decoded."""
    pass


class MalformedTimestamp(ReleaseSelectorError):
    """A release's published_at value is not a valid RFC 3339 timestamp."""
    pass


class OracleUnavailable(ReleaseSelectorError):
    """The crash-report query failed."""
    pass


class NoReleasesFound(ReleaseSelectorError):
    """The scan produced no stable candidate and no fallback candidate."""
    pass


class ConfigurationError(ReleaseSelectorError):
    """The configuration file is unreadable or holds invalid values."""
    pass


class OutputUnavailable(ReleaseSelectorError):
    """The pointer files could not be written."""
    pass
