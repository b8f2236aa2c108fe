"""Centralized logging system for compilepad.

Provides unified logging with 4 verbosity levels:
- QUIET (0): Warnings + errors
- NORMAL (1): Info + warnings + errors
- VERBOSE (2): Detailed info
- DEBUG (3): Everything including internal state

Usage:
    from compilepad.core.logging import get_logger, set_verbosity

    logger = get_logger(__name__)
    set_verbosity(2)  # VERBOSE

    logger.debug("Stage finished")
    logger.verbose("Compile scheduled")
    logger.info("Compiler ready")
    logger.warning("Compiler not supported")
    logger.error("Syntax error")
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum


class VerbosityLevel(IntEnum):
    """Verbosity levels for compilepad."""

    QUIET = 0  # Warnings + errors
    NORMAL = 1  # Info + warnings + errors
    VERBOSE = 2  # Detailed info
    DEBUG = 3  # Everything


_LEVEL_NAMES = {
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "debug": VerbosityLevel.DEBUG,
}


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


# Global verbosity level
_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL

# Color support
_USE_COLORS: bool = True

# Record sinks (web log tap, tests)
_SINKS: list[Callable[[LogRecord], None]] = []


def set_verbosity(level: int | str | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: Verbosity level (0-3, level name or VerbosityLevel enum)
    """
    global _VERBOSITY

    if isinstance(level, str):
        level = _LEVEL_NAMES[level.strip().lower()]
    elif isinstance(level, int):
        level = VerbosityLevel(level)

    _VERBOSITY = level


def get_verbosity() -> VerbosityLevel:
    """Get current verbosity level."""
    return _VERBOSITY


def set_colors(enabled: bool) -> None:
    """Enable or disable colored output."""
    global _USE_COLORS
    _USE_COLORS = enabled


def add_log_sink(sink: Callable[[LogRecord], None]) -> None:
    """Register a callback receiving every emitted LogRecord."""
    _SINKS.append(sink)


def remove_log_sink(sink: Callable[[LogRecord], None]) -> None:
    """Unregister a sink. Unknown sinks are ignored."""
    with contextlib.suppress(ValueError):
        _SINKS.remove(sink)


def _publish(record: LogRecord) -> None:
    for sink in list(_SINKS):
        try:
            sink(record)
        except Exception:
            # Fail-safe: never call the logger here (avoid recursion).
            msg = "Log sink raised; suppressed.\n" + traceback.format_exc()
            with contextlib.suppress(Exception):
                sys.stderr.write(msg)


class CompilePadLogger:
    """Logger for compilepad with verbosity support."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "VERBOSE": "\033[34m",  # Blue
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "RESET": "\033[0m",
    }

    def __init__(self, name: str):
        """Initialize logger.

        Args:
            name: Logger name (usually module name)
        """
        self.name = name

    def _format_message(self, level: str, message: str) -> str:
        if _USE_COLORS and sys.stdout.isatty():
            color = self.COLORS.get(level, "")
            reset = self.COLORS["RESET"]
            return f"{color}[{level.lower()}]{reset} {message}"
        return f"[{level.lower()}] {message}"

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        """Emit a message when the global verbosity allows it.

        Args:
            level: Required verbosity level
            level_name: Level name for display
            message: Message to log
        """
        if level > _VERBOSITY:
            return

        _publish(
            LogRecord(level_name=level_name, plain=f"[{level_name.lower()}] {message}", logger_name=self.name)
        )

        formatted = self._format_message(level_name, message)
        print(formatted, file=sys.stderr if level_name == "ERROR" else sys.stdout)

    def debug(self, message: str) -> None:
        """Log debug message (verbosity >= DEBUG)."""
        self._log(VerbosityLevel.DEBUG, "DEBUG", message)

    def verbose(self, message: str) -> None:
        """Log verbose message (verbosity >= VERBOSE)."""
        self._log(VerbosityLevel.VERBOSE, "VERBOSE", message)

    def info(self, message: str) -> None:
        """Log info message (verbosity >= NORMAL)."""
        self._log(VerbosityLevel.NORMAL, "INFO", message)

    def warning(self, message: str) -> None:
        """Log warning message (verbosity >= QUIET)."""
        self._log(VerbosityLevel.QUIET, "WARNING", message)

    def error(self, message: str) -> None:
        """Log error message (always shown)."""
        self._log(VerbosityLevel.QUIET, "ERROR", message)


# Logger registry
_LOGGERS: dict[str, CompilePadLogger] = {}


def get_logger(name: str = __name__) -> CompilePadLogger:
    """Get logger instance for module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = CompilePadLogger(name)

    return _LOGGERS[name]
