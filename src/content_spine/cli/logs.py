"""Diagnostics log commands."""

from __future__ import annotations

import typer

from content_spine.cli.utils import console, get_runtime, output

app = typer.Typer(no_args_is_help=True)


@app.command("tail")
def tail_logs(
    limit: int = typer.Option(50, "--limit", "-n", help="Lines to show, newest first."),
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show the newest diagnostics lines."""
    rt = get_runtime(database)
    lines = rt.diagnostics.tail(limit)
    if json_out:
        output({"lines": lines}, as_json=True)
        return
    if not lines:
        console.print("[dim]No diagnostics yet.[/dim]")
        return
    for line in lines:
        console.print(line, markup=False, highlight=False)


@app.command("clear")
def clear_logs(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
) -> None:
    """Drop every diagnostics line."""
    rt = get_runtime(database)
    rt.diagnostics.sink.clear()
    console.print("[green]✓[/green] Diagnostics cleared.")
