"""Structured logging for selection runs.

Each step of a run (feed fetched, release skipped and why, fallback
captured, pointers written) is one structured event, so a promotion
pipeline can read the reasoning behind a stable pick straight out of the
log:
  {"event": "release_skipped", "repo": "eqemu/server", "tag": "v1.4.2", "rule": "no_fixes"}

Run-wide fields such as the repository are bound once with
bind_run_context() and merged into every event of that run.

Usage:
    from release_selector.logging_config import setup_logging, get_logger

    setup_logging(environment="production")
    logger = get_logger(__name__)
    logger.info("stable_selected", tag="v1.4.0")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def select_renderer(environment: str) -> Any:
    """JSON lines for production, colorized console output otherwise."""
    if environment == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(
    environment: str | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog for a CLI run.

    Events go to stderr; stdout is reserved for the selected tags or the
    --json result.

    Args:
        environment: "development" or "production". Reads from
                     ENVIRONMENT env var if not provided.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Reads from LOG_LEVEL env var if not provided.
    """
    env = environment or os.environ.get("ENVIRONMENT", "development")
    level = getattr(logging, (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            select_renderer(env),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # httpx reports each request through the standard library.
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def bind_run_context(**fields: Any) -> None:
    """Attach fields to every event logged for the rest of the run.

    Replaces whatever a previous run bound.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**fields)


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        A structlog bound logger
    """
    return structlog.get_logger(name)
