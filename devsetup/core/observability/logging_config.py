"""
Logging configuration — one setup call for the CLI process.

Console output goes to stderr so that ``--json`` on stdout stays
parseable. Progress lines are printed by the CLI itself; log records
are for diagnosing a run (which command ran, why a strategy failed).

Level precedence:
    --debug  >  --verbose  >  --quiet  >  DEVSETUP_LOG_LEVEL  >  WARNING

A full-detail copy can be written with DEVSETUP_LOG_FILE
(level from DEVSETUP_LOG_FILE_LEVEL, default DEBUG).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_FMT_CONSOLE = "%(levelname)s: %(message)s"
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_FMT_DETAIL = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d | %(message)s"

# Command execution logs every argv and stderr tail at DEBUG.
_COMMAND_LOGGER = "devsetup.adapters.shell"


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    show_commands: bool = False,
) -> None:
    """Configure the root logger for a devsetup run.

    Args:
        level: Console level name.
        log_file: Optional log file; ``~`` is expanded and missing parent
            directories are created.
        log_file_level: Level for the file. Defaults to DEBUG so the file
            always holds the executed commands.
        show_commands: Let command execution records reach the console
            even below DEBUG (used by ``--debug``).
    """
    console_level = _parse_level(level)

    if console_level <= logging.DEBUG:
        formatter = logging.Formatter(_FMT_DETAIL, datefmt="%H:%M:%S")
    elif console_level <= logging.INFO:
        formatter = logging.Formatter(_FMT_VERBOSE, datefmt="%H:%M:%S")
    else:
        formatter = logging.Formatter(_FMT_CONSOLE)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_level = _parse_level(log_file_level, default=logging.DEBUG)
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_DETAIL, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(fh)

    root.setLevel(root_level)

    # The file handler wants command records; the console only with --debug.
    command_logger = logging.getLogger(_COMMAND_LOGGER)
    if show_commands or log_file:
        command_logger.setLevel(logging.NOTSET)
    else:
        command_logger.setLevel(max(console_level, logging.INFO))

    logging.raiseExceptions = False


def _parse_level(level: str | None, default: int = logging.WARNING) -> int:
    """Level name to its numeric value; unknown names fall back to ``default``."""
    if not level:
        return default
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return default
    return numeric
