"""CLI for one-shot Dockerfile scans."""

import argparse
import json
import sys
from typing import Any, Dict, List

from ..core.scanner import build_scanner
from ..models import Diagnostic, DiagnosticSeverity, TextDocument
from ..utils.logging import get_logger
from .options import add_common_arguments, configure, discover_dockerfiles, format_diagnostic

logger = get_logger(__name__)


def create_scan_parser(subparsers: Any) -> argparse.ArgumentParser:
    """Create the scan subparser."""
    parser = subparsers.add_parser(
        "scan",
        help="Scan Dockerfiles once and print diagnostics",
        description="""
Scan the FROM lines of one or more Dockerfiles and print one diagnostic
per base image with known vulnerabilities.

Directories are searched recursively for Dockerfile, Dockerfile.*,
*.dockerfile and Containerfile.
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan a Dockerfile against quay.io
  basescan scan Dockerfile

  # Scan every Dockerfile below the current directory, JSON output
  basescan scan . --format json

  # Pull images locally to determine the platform digest
  basescan scan Dockerfile --strategy local

  # Ask a backend proxy instead of the registry
  BASESCAN_BACKEND_URL=http://scanner.internal:8080 basescan scan Dockerfile --strategy backend
""",
    )

    parser.add_argument(
        "paths",
        nargs="+",
        help="Dockerfiles or directories to scan",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--no-error",
        action="store_true",
        help="Return exit code 0 even when error diagnostics are reported",
    )
    add_common_arguments(parser)

    return parser


def run_scan(args: argparse.Namespace) -> int:
    """
    Run a one-shot scan.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    config = configure(args)
    scanner = build_scanner(config)

    files = discover_dockerfiles(args.paths)
    if not files:
        print("❌ No Dockerfiles found", file=sys.stderr)
        return 1

    results: Dict[str, List[Diagnostic]] = {}
    for path in files:
        try:
            document = TextDocument.from_path(path)
        except OSError as e:
            print(f"❌ Cannot read {path}: {e}", file=sys.stderr)
            return 1
        logger.step(f"Scanning {path}")
        results[path] = scanner.scan_document(document)

    if args.format == "json":
        payload = {
            path: [diagnostic.to_dict() for diagnostic in diagnostics]
            for path, diagnostics in results.items()
        }
        print(json.dumps(payload, indent=2))
    else:
        for path, diagnostics in results.items():
            for diagnostic in diagnostics:
                print(format_diagnostic(path, diagnostic))

    total = sum(len(diagnostics) for diagnostics in results.values())
    errors = sum(
        1
        for diagnostics in results.values()
        for diagnostic in diagnostics
        if diagnostic.severity == DiagnosticSeverity.ERROR
    )
    logger.result(f"{len(files)} file(s), {total} diagnostic(s), {errors} error(s)")
    if not total:
        logger.success("No vulnerable base images found")

    if errors and not args.no_error:
        return 1
    return 0
