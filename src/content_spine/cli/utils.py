"""
CLI utility helpers: runtime construction and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from content_spine.core.enums import BatchLane
from content_spine.core.errors import ContentSpineError
from content_spine.core.protocols import ScheduleTrigger
from content_spine.core.settings import load_settings
from content_spine.runtime import Runtime, build_runtime

console = Console()
err_console = Console(stderr=True)

LANE_HELP = "Batch lane: titles, video_h2 or model."


# ── Runtime helper ───────────────────────────────────────────────────────


def get_runtime(database: str | None = None, *, trigger: ScheduleTrigger | None = None) -> Runtime:
    """Load settings and wire a runtime. Defaults to ``settings.database_path``."""
    overrides: dict[str, Any] = {}
    if database:
        overrides["database_path"] = database
    try:
        settings = load_settings(**overrides)
        return build_runtime(settings, trigger=trigger)
    except ContentSpineError as exc:
        fail(exc)


def parse_lane(value: str) -> BatchLane:
    try:
        return BatchLane(value.strip().lower())
    except ValueError:
        choices = ", ".join(lane.value for lane in BatchLane)
        err_console.print(f"[bold red]Error[/bold red]: unknown lane {value!r} (choose from {choices})")
        raise typer.Exit(code=1) from None


def fail(exc: ContentSpineError) -> NoReturn:
    """Print a typed error and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
    raise typer.Exit(code=1) from exc


# ── Output helpers ───────────────────────────────────────────────────────


def output(data: Any, *, as_json: bool = False, title: str = "") -> None:
    """Render a dict, dataclass or list of them to the terminal."""
    if as_json:
        payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, list | tuple):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        _print_table(list(data), title=title)
    else:
        _print_dict(_to_dict(data), title=title)


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / object with ``to_dict`` / dict to plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(str(v) for v in d.values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
