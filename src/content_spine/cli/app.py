"""
Root Typer application for the content-spine CLI.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

from content_spine.cli.batch import app as batch_app
from content_spine.cli.logs import app as logs_app
from content_spine.cli.tools import app as tools_app
from content_spine.cli.utils import fail
from content_spine.core.errors import ContentSpineError
from content_spine.core.logging import configure_logging
from content_spine.core.settings import load_settings

app = Typer(
    name="content-spine",
    help="content-spine: resolve content records to reference rows and apply them in batches.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from content_spine import __version__

        typer.echo(f"content-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """content-spine CLI: batch runs, backfill tools and diagnostics."""
    try:
        settings = load_settings()
    except ContentSpineError as exc:
        fail(exc)
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.json_logs,
        stream=sys.stderr,
    )


# ── Sub-command registration ─────────────────────────────────────────────

app.add_typer(batch_app, name="batch", help="Batch start, tick, reset and status.")
app.add_typer(tools_app, name="tools", help="Backfill and lookup tools.")
app.add_typer(logs_app, name="logs", help="Diagnostics log.")


if __name__ == "__main__":
    app()
