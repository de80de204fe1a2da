"""Logging levels and root logger setup shared by the CLI."""

from __future__ import annotations

import logging
import os

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_ENV_VAR = "PEDALCTL_LOG"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

_ENV_LEVELS = {
    "off": logging.CRITICAL + 10,
    "warning": logging.WARNING,
    "debug": logging.DEBUG,
    "trace": TRACE,
}


def level_for(verbosity: int, env_value: str | None = None) -> int:
    """Pick the root level: ``-v`` flags win, then ``PEDALCTL_LOG``, then warnings."""
    if verbosity >= 2:
        return TRACE
    if verbosity == 1:
        return logging.DEBUG
    if env_value:
        return _ENV_LEVELS.get(env_value.strip().lower(), logging.WARNING)
    return logging.WARNING


def configure_logging(verbosity: int = 0) -> int:
    level = level_for(verbosity, os.environ.get(LOG_ENV_VAR))
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    return level
