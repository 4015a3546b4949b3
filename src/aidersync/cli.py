"""Command-line interface for aidersync."""

from __future__ import annotations

import argparse
import asyncio
import os
from collections.abc import Sequence
from typing import TYPE_CHECKING

from aidersync import __version__
from aidersync.config.watcher import ConfigWatcher

if TYPE_CHECKING:
    from aidersync.config.schema import Config
    from aidersync.interactive import InteractiveRepl


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="aidersync",
        description="Drive an aider session and keep its files in sync with an editor",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase verbosity (can be repeated, up to -vvvv)",
    )
    parser.add_argument(
        "--cwd",
        default=None,
        help="Directory to resolve the project root from (default: current directory)",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model flag (--model=--sonnet, --model=--opus, --model=--4o) or 'custom'",
    )
    parser.add_argument(
        "--command",
        default=None,
        help="Assistant command line (default: aider)",
    )
    parser.add_argument(
        "--startup-args",
        default=None,
        help="Extra arguments appended to the assistant command line",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Do not start a session until /open",
    )
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> None:
    """Apply command-line overrides on top of a loaded config, in place."""
    if args.verbose is not None:
        config.logging.verbose = min(args.verbose + 1, 4)
    if args.model:
        config.aider.model = args.model
    if args.command:
        config.aider.command_line = args.command
    if args.startup_args is not None:
        config.aider.startup_args = args.startup_args


async def serve(repl: InteractiveRepl, project_root: str, args: argparse.Namespace) -> None:
    """Run the REPL while following config file changes for ``project_root``."""
    unregister = repl.engine.watch_config(adjust=lambda config: apply_overrides(config, args))
    try:
        async with ConfigWatcher(project_root=project_root):
            await repl.run(open_session=not args.no_open)
    finally:
        unregister()


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    from aidersync.config import load_config
    from aidersync.interactive import InteractiveRepl
    from aidersync.logging import setup_logging
    from aidersync.paths import PathResolver

    start_dir = os.path.abspath(args.cwd or os.getcwd())
    project_root = PathResolver().resolve_root(start_dir)
    config = load_config(project_root=project_root)
    apply_overrides(config, args)

    setup_logging(config.logging)

    repl = InteractiveRepl(config, start_dir=start_dir)
    try:
        asyncio.run(serve(repl, project_root, args))
    except KeyboardInterrupt:
        pass
    return 0
