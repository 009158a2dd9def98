"""Logging setup helpers for multiblob."""

from __future__ import annotations

import logging
import os
import sys

# Shared library logger used across modules.
log = logging.getLogger("multiblob")


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Configure console logging with a default format and level.

    Args:
        level: Optional log level (e.g. ``"DEBUG"`` or ``logging.INFO``). If
            omitted, ``MULTIBLOB_LOGLEVEL`` from the environment is used and
            falls back to ``INFO`` when unset or invalid.

    Returns:
        logging.Logger: The configured library logger.
    """
    resolved_level = _coerce_level(level)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
        )
        root.addHandler(handler)

    root.setLevel(resolved_level)

    # The SDK stack is chatty at DEBUG.
    for noisy in ("boto3", "botocore", "urllib3", "s3transfer"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    log.setLevel(resolved_level)
    log.propagate = True
    log.debug("Logging configured at level %s", logging.getLevelName(resolved_level))
    return log


def _coerce_level(level: str | int | None) -> int:
    """Return a numeric logging level from user input or environment."""
    candidate = level if level is not None else os.getenv("MULTIBLOB_LOGLEVEL", "INFO")

    if isinstance(candidate, int):
        return candidate

    if isinstance(candidate, str):
        numeric = logging.getLevelName(candidate.upper())
        if isinstance(numeric, int):
            return numeric

    return logging.INFO
