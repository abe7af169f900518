"""Logging utilities for basescan."""

import logging
import sys
from enum import Enum
from typing import Optional


ROOT_LOGGER = "basescan"

# Progress levels, shown in info mode between INFO and WARNING
STEP = 25
RESULT = 24

# Warnings and errors reach the handler only in verbose mode
_verbose_mode = False


class LogLevel(Enum):
    """Output level selected with --output-level."""
    NONE = "none"
    INFO = "info"
    VERBOSE = "verbose"

    @classmethod
    def from_string(cls, value: str) -> "LogLevel":
        try:
            return cls(value.lower())
        except ValueError:
            return cls.INFO

    @property
    def threshold(self) -> int:
        if self is LogLevel.NONE:
            return logging.CRITICAL + 1
        if self is LogLevel.VERBOSE:
            return logging.DEBUG
        return logging.INFO


class ColoredFormatter(logging.Formatter):
    """Terminal formatter: one colour and marker per level."""

    STYLES = {
        logging.DEBUG: ("\033[36m", "🔍"),
        logging.INFO: ("\033[0m", "ℹ️ "),
        STEP: ("\033[34m", "📋"),
        RESULT: ("\033[32m", "   -"),
        logging.WARNING: ("\033[33m", "⚠️ "),
        logging.ERROR: ("\033[31m", "❌"),
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color, marker = self.STYLES.get(record.levelno, (self.RESET, ""))
        return f"{color}{marker} {record.getMessage()}{self.RESET}"


class PlainFormatter(logging.Formatter):
    """Formatter for pipes and CI logs."""

    PREFIXES = {
        logging.DEBUG: "[DEBUG]",
        logging.INFO: "[INFO]",
        STEP: "[STEP]",
        RESULT: "  -",
        logging.WARNING: "[WARN]",
        logging.ERROR: "[ERROR]",
    }

    def format(self, record: logging.LogRecord) -> str:
        return f"{self.PREFIXES.get(record.levelno, '[LOG]')} {record.getMessage()}"


class VerboseOnlyFilter(logging.Filter):
    """Drop WARNING and ERROR records unless verbose mode is on."""

    def filter(self, record: logging.LogRecord) -> bool:
        return _verbose_mode or record.levelno < logging.WARNING


def setup_logging(level: LogLevel = LogLevel.INFO, use_colors: Optional[bool] = None) -> None:
    """
    Install the stderr handler on the basescan logger.

    Args:
        level: Output level from the command line
        use_colors: Coloured output (auto-detected from stderr when None)
    """
    global _verbose_mode
    _verbose_mode = level is LogLevel.VERBOSE

    logging.addLevelName(STEP, "STEP")
    logging.addLevelName(RESULT, "RESULT")

    if use_colors is None:
        use_colors = sys.stderr.isatty()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level.threshold)
    handler.addFilter(VerboseOnlyFilter())
    handler.setFormatter(ColoredFormatter() if use_colors else PlainFormatter())

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level.threshold)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger instance.

    Module names are used as-is, so ``basescan.core.scanner`` inherits
    the handler installed on the ``basescan`` logger.
    """
    return logging.getLogger(name)


def _log_step(self: logging.Logger, message: str, *args, **kwargs) -> None:
    if self.isEnabledFor(STEP):
        self._log(STEP, message, args, **kwargs)


def _log_result(self: logging.Logger, message: str, *args, **kwargs) -> None:
    if self.isEnabledFor(RESULT):
        self._log(RESULT, message, args, **kwargs)


def _log_success(self: logging.Logger, message: str, *args, **kwargs) -> None:
    self.info(f"✅ {message}", *args, **kwargs)


def _verbose_only(level: int, tag: str):
    def log(self: logging.Logger, message: str, *args, **kwargs) -> None:
        if _verbose_mode:
            self.log(level, message, *args, **kwargs)
        else:
            self.debug(f"[SUPPRESSED {tag}] {message}", *args, **kwargs)
    return log


logging.Logger.step = _log_step
logging.Logger.result = _log_result
logging.Logger.success = _log_success
logging.Logger.error_verbose = _verbose_only(logging.ERROR, "ERROR")
logging.Logger.warn_verbose = _verbose_only(logging.WARNING, "WARN")
