"""Main CLI entry point for objectmap."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .commands import handle_config, handle_replay


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all commands and options."""
    parser = argparse.ArgumentParser(
        prog="objectmap",
        description="Incremental segment-to-object clustering",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  objectmap replay scene.json --config clustering.json
  objectmap replay scene.json --config clustering.json -v --profile timing.json
  objectmap config validate clustering.json
  objectmap config show clustering.json
  objectmap config defaults
        """,
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    replay_parser = subparsers.add_parser("replay", help="Replay a recorded scene")
    replay_parser.add_argument("replay", help="Path to replay JSON file")
    replay_parser.add_argument("-c", "--config", required=True, help="Path to clustering config JSON")
    replay_parser.add_argument("--profile", help="Write per-stage timing to this JSON file")

    config_parser = subparsers.add_parser("config", help="Inspect clustering configuration")
    config_subparsers = config_parser.add_subparsers(dest="config_command", help="Configuration actions")
    config_subparsers.required = True

    show_parser = config_subparsers.add_parser("show", help="Display a configuration file")
    show_parser.add_argument("path", help="Path to clustering config JSON")
    validate_parser = config_subparsers.add_parser("validate", help="Validate a configuration file")
    validate_parser.add_argument("path", help="Path to clustering config JSON")
    config_subparsers.add_parser("defaults", help="Print the default configuration")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if args.command == "replay":
        return handle_replay(args)
    if args.command == "config":
        return handle_config(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
