"""
Main entry point for the basescan package.

Usage:
    python -m basescan scan [OPTIONS] PATH...
    python -m basescan watch [OPTIONS] PATH...
    python -m basescan resolve [OPTIONS]
"""

import sys


def main() -> int:
    """Main entry point."""
    from .cli import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
