"""Command-line interface for apiweave.

Runs the bundled NHL pipelines and maintains response caches.

Usage:
    apiweave team --id 15 --season 2019
    apiweave player --id 8471214 --season 2018 --output ovechkin.csv
    apiweave team --id 15 --format json
    apiweave cache stats
    apiweave cache gc --name NHLPublicAPI
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

from apiweave import __version__
from apiweave.cache import CacheStore
from apiweave.clients import HttpxTransport
from apiweave.config import settings
from apiweave.errors import ApiWeaveError
from apiweave.export import write_csv
from apiweave.pipeline import PipelineExecutor
from apiweave.presets import player_bindings, player_pipeline, team_bindings, team_pipeline

logger = logging.getLogger(__name__)

# command -> (pipeline factory, bindings factory, default output file)
_PIPELINES: dict[str, tuple[Callable[..., dict], Callable[..., dict], str]] = {
    "team": (team_pipeline, team_bindings, "teamOutput.csv"),
    "player": (player_pipeline, player_bindings, "playerOutput.csv"),
}


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser with all commands and arguments.
    """
    parser = argparse.ArgumentParser(
        prog="apiweave",
        description="apiweave — flatten relational JSON APIs into records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  apiweave team --id 15 --season 2019
  apiweave player --id 8471214 --season 2018 --output player.csv
  apiweave cache gc
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("team", "Build a team record for one season"),
        ("player", "Build a player record for one season"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--id",
            type=str,
            default=None,
            help="Numeric id (default: 1)",
        )
        sub.add_argument(
            "--season",
            type=str,
            default=None,
            help="Opening year of the season, e.g. 2019 (default: latest started)",
        )
        sub.add_argument(
            "--output",
            type=Path,
            default=None,
            help=f"CSV output path (default: ./{_PIPELINES[name][2]})",
        )
        sub.add_argument(
            "--format",
            type=str,
            choices=["csv", "json"],
            default="csv",
            help="Output format (default: csv)",
        )
        sub.add_argument(
            "--cache-dir",
            type=Path,
            default=None,
            help="Response cache directory (default: from settings)",
        )

    cache_parser = subparsers.add_parser("cache", help="Inspect or clean response caches")
    cache_parser.add_argument("action", choices=["stats", "gc"], help="Cache action")
    cache_parser.add_argument(
        "--name",
        type=str,
        default="NHLPublicAPI",
        help="Cache name (default: NHLPublicAPI)",
    )
    cache_parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Response cache directory (default: from settings)",
    )

    subparsers.add_parser("version", help="Show version information")

    return parser


async def _run_pipeline(definition: dict[str, Any], bindings: dict[str, Any], cache_dir: str) -> dict[str, Any]:
    async with HttpxTransport() as transport:
        executor = PipelineExecutor(definition, transport=transport, cache_dir=cache_dir)
        return await executor.run(bindings)


def cmd_pipeline(args: argparse.Namespace) -> int:
    """Execute the team or player command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    pipeline_factory, bindings_factory, default_output = _PIPELINES[args.command]
    try:
        bindings = bindings_factory(args.id, args.season)
        cache_dir = str(args.cache_dir or settings.cache_dir)

        logger.info("Running %s pipeline with %s (cache_dir=%s)", args.command, bindings, cache_dir)
        record = asyncio.run(_run_pipeline(pipeline_factory(), bindings, cache_dir))

        if args.format == "json":
            print(json.dumps(record, indent=2))
        else:
            output = args.output or Path(default_output)
            write_csv(record, output)
            print(f"Saved to {output}")

        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Pipeline failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cache(args: argparse.Namespace) -> int:
    """Execute the cache command."""
    try:
        store = CacheStore(name=args.name, base_path=args.cache_dir or settings.cache_dir)
    except ApiWeaveError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.action == "gc":
        removed = store.collect_garbage()
        print(f"Removed {removed} stale entries from '{args.name}'")
    else:
        for key, value in store.stats().items():
            print(f"{key}: {value}")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Execute the version command."""
    print(f"apiweave v{__version__}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    parser = create_parser()
    args = parser.parse_args(argv)

    # Route to command handler
    if args.command in _PIPELINES:
        return cmd_pipeline(args)
    elif args.command == "cache":
        return cmd_cache(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        # No command specified
        parser.print_help()
        return 0


def cli_entry() -> None:
    """Console script entry point for setuptools."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
