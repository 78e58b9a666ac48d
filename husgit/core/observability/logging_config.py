"""
Logging configuration — set up once by the CLI root command.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this config. Console output goes to stderr so ``--json`` output on
stdout stays parseable.

Level precedence:
    --debug / --verbose / --quiet  >  HUSGIT_LOG_LEVEL  >  WARNING

HUSGIT_LOG_FILE adds a file at HUSGIT_LOG_FILE_LEVEL (default: console level).
"""

from __future__ import annotations

import logging
import sys

LOG_LEVEL_ENV_VAR = "HUSGIT_LOG_LEVEL"
LOG_FILE_ENV_VAR = "HUSGIT_LOG_FILE"
LOG_FILE_LEVEL_ENV_VAR = "HUSGIT_LOG_FILE_LEVEL"

# (format, datefmt) by console level; the file always gets the DEBUG layout
_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_PLAIN_FORMAT = ("%(message)s", None)
_FILE_FORMAT = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%Y-%m-%d %H:%M:%S")

# HTTP stack loggers that chatter at INFO
_NOISY_LOGGERS = ("urllib3", "urllib.request")


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def _handler(handler: logging.Handler, level: int, fmt: tuple[str, str | None]) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt[0], datefmt=fmt[1]))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root handlers with husgit's console (and file) handlers.

    Args:
        level: Console level name.
        log_file: Also log to this file.
        log_file_level: Level for ``log_file``; defaults to ``level``.
        quiet_third_party: Hold the HTTP stack loggers at WARNING below DEBUG.
    """
    console_level = _parse_level(level)
    fmt = next(
        (f for threshold, f in sorted(_CONSOLE_FORMATS.items()) if console_level <= threshold),
        _PLAIN_FORMAT,
    )
    handlers = [_handler(logging.StreamHandler(sys.stderr), console_level, fmt)]

    if log_file:
        file_level = _parse_level(log_file_level or level)
        handlers.append(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), file_level, _FILE_FORMAT)
        )

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # CliRunner closes its captured stderr between invocations
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name → numeric constant; unknown names fall back to WARNING."""
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
