"""Logging for deskpilot.

All modules log through children of the "deskpilot" logger:

    log = get_logger("actions")   # -> deskpilot.actions
    log.info("Focused %s", app)

Nothing is emitted until setup_logging() runs. Output goes to the configured
file (logging.file or DESKPILOT_LOG); without one, to stderr when stderr is a
terminal. A copilot launched from a desktop shell has no console, so the
stderr handler is skipped there.

Two levels sit beside the standard ones: VERBOSE (15) for per-action
progress and TRACE (5) for request payloads. logging.verbose picks a level
by number: 0 errors, 1 warnings, 2 info, 3 verbose, 4 trace.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deskpilot.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15
logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_ENV_VAR = "DESKPILOT_LOG"
ROOT_LOGGER = "deskpilot"
LOG_FORMAT = "%(asctime)s %(levelname)s %(component)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

_root = logging.getLogger(ROOT_LOGGER)
_handlers: list[logging.Handler] = []


class _ComponentFormatter(logging.Formatter):
    """Lowercase level names and the logger name without the package prefix."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        name = record.name
        record.component = name[len(ROOT_LOGGER) + 1 :] if name.startswith(ROOT_LOGGER + ".") else name
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Effective level; a verbosity number takes precedence over a level name."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(VERBOSITY_LEVELS) - 1)
        return VERBOSITY_LEVELS[index]
    if config.level:
        name = config.level.strip().upper()
        level = logging.getLevelName("WARNING" if name == "WARN" else name)
        if isinstance(level, int):
            return level
    return logging.INFO


def _log_path(config: LoggingConfig | None) -> str | None:
    path = (config.file if config else None) or os.environ.get(LOG_ENV_VAR)
    return os.path.expanduser(path) if path else None


def _attach(handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(_ComponentFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    _root.addHandler(handler)
    _handlers.append(handler)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install handlers on the deskpilot logger. Later calls are no-ops."""
    if _handlers or _root.level != logging.NOTSET:
        return

    level = resolve_level(config)
    _root.setLevel(level)

    path = _log_path(config)
    if path:
        try:
            _attach(logging.FileHandler(path, mode="a", encoding="utf-8"), level)
            return
        except OSError as e:
            if not sys.stderr.isatty():
                return
            print(f"[deskpilot] Cannot write log file {path}: {e}", file=sys.stderr)
    if sys.stderr.isatty():
        _attach(logging.StreamHandler(sys.stderr), level)


def reset_logging() -> None:
    """Remove the handlers installed by setup_logging (for tests)."""
    while _handlers:
        handler = _handlers.pop()
        _root.removeHandler(handler)
        handler.close()
    _root.setLevel(logging.NOTSET)


def get_logger(name: str | None = None) -> logging.Logger:
    """The deskpilot logger, or its child for a component such as "agent"."""
    return _root.getChild(name) if name else _root
