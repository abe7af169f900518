"""CLI entry points for basescan."""

import sys
import argparse
from typing import List, Optional

from .scan import create_scan_parser, run_scan
from .watch import create_watch_parser, run_watch
from .resolve import create_resolve_parser, run_resolve


def create_main_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="basescan",
        description="Dockerfile base image vulnerability scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  scan      Scan Dockerfiles once and print diagnostics
  watch     Rescan Dockerfiles whenever they change
  resolve   Resolve an image reference to its platform manifest digest

Examples:
  # Scan a Dockerfile
  basescan scan Dockerfile

  # Keep diagnostics up to date while editing
  basescan watch .

  # Show the digest used for vulnerability lookups
  basescan resolve --image quay.io/org/app:1.0
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    create_scan_parser(subparsers)
    create_watch_parser(subparsers)
    create_resolve_parser(subparsers)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_main_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    command_handlers = {
        "scan": run_scan,
        "watch": run_watch,
        "resolve": run_resolve,
    }

    handler = command_handlers.get(args.command)
    if handler:
        try:
            return handler(args)
        except KeyboardInterrupt:
            print("\n\nOperation cancelled by user", file=sys.stderr)
            return 130
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 1


__all__ = ["main", "create_main_parser"]
