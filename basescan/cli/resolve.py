"""CLI for resolving an image to the digest vulnerabilities are keyed by."""

import argparse
import json
import sys
from typing import Any

from ..core.scanner import build_resolver
from ..utils.registry import parse_image_reference
from ..utils.subprocess import check_prerequisites
from .options import add_common_arguments, configure


def create_resolve_parser(subparsers: Any) -> argparse.ArgumentParser:
    """Create the resolve subparser."""
    parser = subparsers.add_parser(
        "resolve",
        help="Resolve an image reference to its platform manifest digest",
        description="""
Resolve an image reference to the single-platform manifest digest used
for vulnerability lookups. Multi-arch manifest lists are narrowed down to
the entry for the target platform.
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resolve through the registry API for the host platform
  basescan resolve --image quay.io/org/app:1.0

  # Resolve for another platform
  basescan resolve --image quay.io/org/app:1.0 --platform linux/arm64

  # Pull locally and resolve from the pulled image
  basescan resolve --image quay.io/org/app:1.0 --strategy local
""",
    )

    parser.add_argument(
        "--image",
        required=True,
        help="Image reference to resolve",
    )
    add_common_arguments(parser)

    return parser


def run_resolve(args: argparse.Namespace) -> int:
    """
    Resolve one image.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    config = configure(args)
    if config.strategy == "backend":
        print("❌ The backend strategy does not resolve digests; use remote or local", file=sys.stderr)
        return 1

    if config.strategy == "local":
        missing = check_prerequisites(["docker"])
        if missing:
            print(f"❌ Missing required tools: {', '.join(missing)}", file=sys.stderr)
            return 1

    reference = parse_image_reference(args.image)
    if reference is None:
        print(f"❌ Not a valid image reference: {args.image}", file=sys.stderr)
        return 1

    record = build_resolver(config).resolve(reference)
    if record is None:
        print(f"⏭️  No manifest for platform {config.target_platform}", file=sys.stderr)
        return 1

    print(json.dumps(record.to_dict(), indent=2))
    return 0
