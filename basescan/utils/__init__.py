"""Utility modules for basescan."""

from .logging import (
    get_logger,
    setup_logging,
    LogLevel,
)
from .subprocess import run_command, CommandResult, check_prerequisites
from .registry import ImageReference, ImageFilter, parse_image_reference

__all__ = [
    "get_logger",
    "setup_logging",
    "LogLevel",
    "run_command",
    "CommandResult",
    "check_prerequisites",
    "ImageReference",
    "ImageFilter",
    "parse_image_reference",
]
