"""One-shot terminal view of every rig's stats, using Rich."""

from __future__ import annotations

import json
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from claymore_exporter.publisher import RigResult


def _color_for_temp(celsius: float) -> str:
    if celsius < 70:
        return "green"
    elif celsius < 80:
        return "yellow"
    return "red"


def _format_uptime(minutes: float) -> str:
    hours, mins = divmod(int(minutes), 60)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h {mins}m"
    return f"{hours}h {mins}m"


def build_rig_table(result: RigResult) -> Table:
    stats = result.stats
    title = (
        f"[bold]{result.rig}[/bold]  {stats.version}  "
        f"up {_format_uptime(stats.uptime_minutes)}  "
        f"total {stats.total_hash_rate:,.0f}  "
        f"shares {stats.shares_found:.0f} ([red]{stats.shares_rejected:.0f} rejected[/red])"
    )
    table = Table(title=title, title_justify="left", show_header=True, header_style="bold")
    table.add_column("GPU")
    table.add_column("Hash rate (kH/s)", justify="right")
    table.add_column("Temp (C)", justify="right")
    table.add_column("Fan (%)", justify="right")

    for gpu in stats.gpus:
        color = _color_for_temp(gpu.temperature)
        table.add_row(
            gpu.name,
            f"{gpu.hash_rate:,.0f}",
            f"[{color}]{gpu.temperature:.0f}[/{color}]",
            f"{gpu.fan_speed:.0f}",
        )

    if stats.parse_failures:
        table.caption = f"[yellow]zeroed unparseable fields: {', '.join(stats.parse_failures)}[/yellow]"
    return table


def print_results(results: List[RigResult], console: Optional[Console] = None):
    console = console or Console()
    for result in results:
        if not result.ok:
            console.print(f"[bold red]{result.rig}[/bold red]  [red]unavailable:[/red] {result.error}")
            console.print()
            continue
        console.print(build_rig_table(result))
        console.print()


def print_jsonl(results: List[RigResult], stream=None):
    """One JSON object per rig per line, for scripts and log shippers."""
    stream = stream or sys.stdout
    for result in results:
        record = {"rig": result.rig}
        if result.ok:
            record.update(result.stats.summary())
        else:
            record["error"] = result.error
        stream.write(json.dumps(record) + "\n")
    stream.flush()
