"""
Logging configuration — set up once by the CLI entrypoint.

Every module that does ``logger = logging.getLogger(__name__)``
inherits this config. Step progress lines are not log records; they go
through the console (click) and are unaffected by the log level.

Levels are resolved in precedence order:
    --debug / --verbose / --quiet  >  DEVBOX_LOG_LEVEL  >  WARNING

DEVBOX_LOG_FILE adds a file handler, at DEVBOX_LOG_FILE_LEVEL if set.
"""

from __future__ import annotations

import logging
import os
import sys

LEVEL_ENV_VAR = "DEVBOX_LOG_LEVEL"
FILE_ENV_VAR = "DEVBOX_LOG_FILE"
FILE_LEVEL_ENV_VAR = "DEVBOX_LOG_FILE_LEVEL"

# ── Formats ─────────────────────────────────────────────────────

# WARNING and up: a warning reads like any other console line
_FMT_PLAIN = "%(message)s"

# --verbose: timestamp and module
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"

# --debug and the log file: level and file:line too
_FMT_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

_DATEFMT_CONSOLE = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for a devbox run.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to a log file.
        log_file_level: Separate level for the file; defaults to ``level``.
    """
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        fmt = _FMT_DETAILED
    elif numeric_level <= logging.INFO:
        fmt = _FMT_VERBOSE
    else:
        fmt = _FMT_PLAIN

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=_DATEFMT_CONSOLE))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root.setLevel(numeric_level)

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_DETAILED, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)
        # the root level gates both handlers
        root.setLevel(min(numeric_level, file_level))


def setup_from_flags(verbose: bool, quiet: bool, debug: bool) -> None:
    """``setup_logging`` with the CLI flags and the DEVBOX_LOG_* env vars."""
    setup_logging(
        level=resolve_level(verbose, quiet, debug, os.environ.get(LEVEL_ENV_VAR)),
        log_file=os.environ.get(FILE_ENV_VAR),
        log_file_level=os.environ.get(FILE_LEVEL_ENV_VAR),
    )


def resolve_level(verbose: bool, quiet: bool, debug: bool, env_level: str | None) -> str:
    """Pick the console level from CLI flags, falling back to the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def _parse_level(level: str | None) -> int:
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
