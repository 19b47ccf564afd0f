"""Operator tools: id backfill, smart backfill, lookups."""

from __future__ import annotations

import typer

from content_spine.batch.backfill import backfill_ids, smart_backfill
from content_spine.batch.lookup import SAMPLE_LIMIT, lookup, sample_records, sample_reference_ids
from content_spine.cli.utils import LANE_HELP, console, fail, get_runtime, output, parse_lane
from content_spine.core.errors import ContentSpineError

app = typer.Typer(no_args_is_help=True)


@app.command("backfill-ids")
def backfill_ids_cmd(
    lane: str = typer.Option(..., "--lane", "-l", help=LANE_HELP),
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Assign reference ids, in order, to records that have none."""
    batch_lane = parse_lane(lane)
    rt = get_runtime(database)
    report = backfill_ids(batch_lane, rt.settings, rt.content, rt.references, rt.diagnostics)
    output(report, as_json=json_out, title=f"Backfill {batch_lane.value}")


@app.command("smart-backfill")
def smart_backfill_cmd(
    lane: str = typer.Option(..., "--lane", "-l", help=LANE_HELP),
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Fuzzy-match and commit mappings for records without one."""
    batch_lane = parse_lane(lane)
    rt = get_runtime(database)
    report = smart_backfill(batch_lane, rt.settings, rt.content, rt.resolver, rt.diagnostics)
    output(report, as_json=json_out, title=f"Smart backfill {batch_lane.value}")


@app.command("lookup")
def lookup_cmd(
    record_id: int = typer.Argument(..., help="Content record id."),
    lane: str = typer.Option(..., "--lane", "-l", help=LANE_HELP),
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show how a record would resolve (never commits)."""
    batch_lane = parse_lane(lane)
    rt = get_runtime(database)
    try:
        result = lookup(record_id, batch_lane, rt.settings, rt.content, rt.references, rt.resolver)
    except ContentSpineError as exc:
        fail(exc)
    output(result, as_json=json_out, title=f"Record {record_id}")


@app.command("samples")
def samples_cmd(
    lane: str = typer.Option(..., "--lane", "-l", help=LANE_HELP),
    limit: int = typer.Option(SAMPLE_LIMIT, "--limit", "-n", help="Rows to show."),
    database: str | None = typer.Option(None, "--database", "-d", help="Database path."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Sample reference ids and the newest records of a lane."""
    batch_lane = parse_lane(lane)
    rt = get_runtime(database)
    category = rt.settings.category_for(batch_lane)
    try:
        ref_ids = sample_reference_ids(rt.references, category, limit)
        records = sample_records(batch_lane, rt.settings, rt.content, rt.references, rt.resolver, limit)
    except ContentSpineError as exc:
        fail(exc)
    if json_out:
        output({"category": category.value, "reference_ids": ref_ids, "records": records}, as_json=True)
        return
    console.print(f"[bold]{category.value}[/bold] ids: {', '.join(ref_ids) or '[dim]none[/dim]'}")
    output(records, title=f"Newest {batch_lane.value} records")
