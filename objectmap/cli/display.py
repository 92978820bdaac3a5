"""Display utilities for the objectmap CLI."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from rich import box
from rich.console import Console
from rich.table import Table

from objectmap.replay import CycleSummary

console = Console()


def _flatten(prefix: str, value: Any) -> Iterable[tuple]:
    if isinstance(value, dict):
        for key, sub in value.items():
            yield from _flatten(f"{prefix}.{key}" if prefix else key, sub)
    else:
        yield prefix, value


def show_config(config: Dict[str, Any]) -> None:
    table = Table(title="Object Clustering Configuration", box=box.ROUNDED)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in _flatten("", config):
        if key == "tasks.embeddings":
            value = f"{len(value)} inline embeddings"
        table.add_row(key, str(value))
    console.print(table)


def show_summaries(summaries: List[CycleSummary]) -> None:
    table = Table(
        title="[bold cyan]Replay Summary[/bold cyan]",
        box=box.DOUBLE_EDGE,
        header_style="bold magenta",
        border_style="cyan",
    )
    table.add_column("Cycle", justify="right")
    table.add_column("Stamp [ns]", justify="right")
    table.add_column("Segments", justify="right")
    table.add_column("Ignored", justify="right", style="yellow")
    table.add_column("Components", justify="right")
    table.add_column("Objects", justify="right", style="green")
    table.add_column("Active", justify="right", style="red")
    table.add_column("Object ids", style="dim")

    for summary in summaries:
        table.add_row(
            str(summary.cycle),
            f"{summary.timestamp_ns:,}",
            str(summary.num_segments),
            str(summary.num_ignored),
            str(summary.num_components),
            str(summary.num_objects),
            str(summary.num_active),
            ", ".join(summary.object_labels),
        )

    console.print(table)
