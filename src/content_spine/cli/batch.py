"""
Batch commands: start, tick, reset, status.

``start`` marks the batch running. With ``--follow`` it also runs an
interval trigger in the foreground until the scheduler stops itself
(nothing left to process) or the operator interrupts.
"""

from __future__ import annotations

import time

import typer

from content_spine.batch.trigger import IntervalTrigger, NullTrigger
from content_spine.cli.utils import console, err_console, fail, get_runtime, output
from content_spine.core.errors import ContentSpineError, TickInFlightError

app = typer.Typer(no_args_is_help=True)

# full counters are in --json output
TICK_COLUMNS = ("lane", "fetched", "written", "unresolved", "last_id")


@app.command("start")
def start_batch(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    follow: bool = typer.Option(False, "--follow", "-f", help="Keep ticking in the foreground until done."),
    interval: float | None = typer.Option(None, "--interval", help="Override tick interval (seconds)."),
) -> None:
    """Mark the batch running and schedule periodic ticks."""
    trigger = IntervalTrigger() if follow else NullTrigger()
    rt = get_runtime(database, trigger=trigger)
    if interval is not None:
        rt.settings.tick_interval_seconds = interval
    rt.scheduler.start()
    if not follow:
        console.print("[green]✓[/green] Batch started. Run [bold]content-spine batch tick[/bold] to process a page.")
        return

    console.print(
        f"[green]✓[/green] Batch started, ticking every {rt.settings.tick_interval_seconds:g}s "
        "(Ctrl+C to detach)."
    )
    try:
        while trigger.is_scheduled:
            time.sleep(0.5)
    except KeyboardInterrupt:
        trigger.cancel()
        console.print("[yellow]Detached.[/yellow] Batch is still marked running.")
        return
    console.print("[green]✓[/green] Batch finished.")


@app.command("tick")
def tick_batch(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Run one forced tick over every lane."""
    rt = get_runtime(database)
    try:
        report = rt.scheduler.tick(forced=True)
    except TickInFlightError as exc:
        fail(exc)
    if json_out:
        output(report, as_json=True)
        return
    rows = [{col: lane.to_dict()[col] for col in TICK_COLUMNS} for lane in report.lanes]
    output(rows, title=f"Tick {report.tick_id}")
    for lane in report.lanes:
        note = lane.aborted or lane.skipped
        if note:
            err_console.print(f"[yellow]{lane.lane.value}[/yellow]: {note}")
    if not report.did_work:
        console.print("[dim]No work this pass.[/dim]")


@app.command("reset")
def reset_batch(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Zero every lane cursor and stop the batch."""
    if not yes:
        typer.confirm("Reset all lane cursors?", abort=True)
    rt = get_runtime(database)
    try:
        rt.scheduler.reset()
    except ContentSpineError as exc:
        fail(exc)
    console.print("[green]✓[/green] Progress reset.")


@app.command("status")
def batch_status(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show running state and lane cursors."""
    rt = get_runtime(database)
    status = rt.scheduler.status()
    if json_out:
        output(status, as_json=True)
        return
    output(
        {"state": status["state"], "batch_size": status["batch_size"], **status["cursors"]},
        title="Batch status",
    )
    if status["running"] and not status["trigger"].get("scheduled", True):
        err_console.print("[dim]No trigger in this process; ticks come from the host or `batch tick`.[/dim]")
