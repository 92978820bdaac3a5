"""CLI command handlers."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from rich.console import Console

from objectmap.clustering.config import ConfigError, get_default_config, load_config
from objectmap.clustering.object_update import ObjectUpdateFunctor
from objectmap.replay import ReplayError, load_replay, run_replay
from objectmap.utils.profiling import get_profiler

from .display import show_config, show_summaries

console = Console()


def handle_replay(args: argparse.Namespace) -> int:
    """Replay a recorded scene through the object functor."""
    try:
        config = load_config(Path(args.config))
        functor = ObjectUpdateFunctor(config)
        replay = load_replay(Path(args.replay))
        summaries = run_replay(replay, functor)
    except (ConfigError, ReplayError) as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    show_summaries(summaries)

    if args.profile:
        get_profiler().save_stats(Path(args.profile))
        console.print(f"[dim]Timing written to {args.profile}[/dim]")
    return 0


def handle_config(args: argparse.Namespace) -> int:
    """Inspect or validate a functor configuration."""
    subcommand = getattr(args, "config_command", None)

    if subcommand == "defaults":
        console.print_json(json.dumps(get_default_config().to_dict()))
        return 0

    try:
        config = load_config(Path(args.path))
        if subcommand == "validate":
            # building the task set catches missing or malformed embeddings
            tasks = config.tasks.create()
            console.print(f"[green]✓ {args.path} is valid ({len(tasks)} tasks)[/green]")
            return 0
    except ConfigError as exc:
        console.print(f"[red]✗ {exc}[/red]")
        return 1

    show_config(config.to_dict())
    return 0


__all__ = ["handle_replay", "handle_config"]
