"""Arguments and helpers shared by the basescan commands."""

import argparse
import os
from typing import List

from ..config import STRATEGIES, ScannerConfig, load_config
from ..models import Diagnostic, TextDocument
from ..utils.logging import LogLevel, setup_logging


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add --config, --strategy, --image-pattern and --output-level."""
    parser.add_argument(
        "--config",
        help="Path to YAML configuration (default: $BASESCAN_CONFIG or ~/.config/basescan/config.yaml)",
    )
    parser.add_argument(
        "--strategy",
        choices=list(STRATEGIES),
        help="How vulnerabilities are looked up (default: from config, 'remote')",
    )
    parser.add_argument(
        "--image-pattern",
        help="Only scan images matching this regular expression (default: ^quay\\.io/)",
    )
    parser.add_argument(
        "--platform",
        help="Target platform os/arch[/variant] for manifest lists (default: host)",
    )
    parser.add_argument(
        "--output-level",
        choices=["none", "info", "verbose"],
        default="info",
        help="Output verbosity level (default: info)",
    )


def configure(args: argparse.Namespace) -> ScannerConfig:
    """
    Set up logging and build the configuration from file and flags.

    Raises:
        ConfigValidationError: invalid configuration
    """
    level = LogLevel.from_string(args.output_level)
    setup_logging(level)

    config = load_config(args.config, validate=False)
    if args.strategy:
        config.strategy = args.strategy
    if args.image_pattern:
        config.image_pattern = args.image_pattern
    if args.platform:
        config.platform = args.platform
    config.validate()
    return config


def discover_dockerfiles(paths: List[str]) -> List[str]:
    """Expand directories into the Dockerfiles they contain; files pass through."""
    found = []
    for path in paths:
        if os.path.isdir(path):
            for root, dirs, files in os.walk(path):
                dirs[:] = sorted(d for d in dirs if not d.startswith("."))
                for name in sorted(files):
                    candidate = os.path.join(root, name)
                    if TextDocument(uri=f"file://{os.path.abspath(candidate)}", text="").is_dockerfile:
                        found.append(candidate)
        else:
            found.append(path)
    return found


def format_diagnostic(path: str, diagnostic: Diagnostic) -> str:
    """``path:line:col: severity: message`` with 1-based positions."""
    start = diagnostic.range
    return (
        f"{path}:{start.start_line + 1}:{start.start_column + 1}: "
        f"{diagnostic.severity.label}: {diagnostic.message}"
    )
