"""
Logging configuration — one setup call for the CLI process.

Every module logs through ``logging.getLogger(__name__)``; nothing below
the CLI configures handlers. Console output goes to stderr so that
``--json`` output on stdout stays machine-readable.

Level precedence:
    --debug / --verbose / --quiet  >  FORMULARY_LOG_LEVEL  >  WARNING

A log file (FORMULARY_LOG_FILE) always gets full detail, at
FORMULARY_LOG_FILE_LEVEL or the console level.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "FORMULARY_LOG_LEVEL"
ENV_FILE = "FORMULARY_LOG_FILE"
ENV_FILE_LEVEL = "FORMULARY_LOG_FILE_LEVEL"

# ── Format strings ──────────────────────────────────────────────

# level → (format, datefmt); WARNING and above print the bare message
_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_BARE = "%(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def _console_formatter(numeric_level: int) -> logging.Formatter:
    for threshold in (logging.DEBUG, logging.INFO):
        if numeric_level <= threshold:
            fmt, datefmt = _CONSOLE_FORMATS[threshold]
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_FMT_BARE)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Replaces any handlers already on the root logger, so calling it again
    (as each CLI invocation in a test run does) does not stack output.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path; defaults to FORMULARY_LOG_FILE.
        log_file_level: Level for the file; defaults to
            FORMULARY_LOG_FILE_LEVEL, then ``level``.
    """
    numeric_level = _parse_level(level)
    log_file = log_file or os.environ.get(ENV_FILE)
    log_file_level = log_file_level or os.environ.get(ENV_FILE_LEVEL)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(_console_formatter(numeric_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(root_level)
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name to its numeric value; unknown names → WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
