"""CLI entry point."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from auditfeed.core.checkpoint import FileCheckpointStore
from auditfeed.core.config import Settings, get_settings
from auditfeed.core.exceptions import AuditFeedError, CheckpointError, ConfigurationError
from auditfeed.core.logging import setup_logging
from auditfeed.emitter import JsonLinesEmitter, LogEmitter
from auditfeed.exporter import run_export
from auditfeed.utils.timestamps import format_timestamp

app = typer.Typer(
    name="auditfeed",
    help="Incremental audit log exporter",
    no_args_is_help=True,
)
console = Console()


def _load_settings(**overrides: Any) -> Settings:
    try:
        return get_settings(**overrides)
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def version() -> None:
    """Show version."""
    from auditfeed import __version__

    console.print(f"auditfeed {__version__}")


@app.command()
def export(
    source: str | None = typer.Option(None, help="Source API: jira or org-events"),
    endpoint: str | None = typer.Option(None, help="API base URL"),
    email: str | None = typer.Option(None, help="Account email (Jira basic auth)"),
    api_token: str | None = typer.Option(None, "--api-token", "--token", help="API token"),
    org_id: str | None = typer.Option(None, help="Organization id (org-events source)"),
    checkpoint: Path | None = typer.Option(None, help="Checkpoint file"),
    from_date: str | None = typer.Option(None, "--from", help="Start from this time"),
    query_filter: str | None = typer.Option(None, "--filter", help="Free-text filter"),
    page_size: int | None = typer.Option(None, help="Records per page"),
    sleep_ms: int | None = typer.Option(None, help="Delay between pages in ms"),
    jsonl: bool = typer.Option(False, "--jsonl", help="Write records as JSON lines to stdout"),
    log_format: str | None = typer.Option(None, help="json or console"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Export records created since the last run."""
    settings = _load_settings(
        source=source,
        api_endpoint=endpoint,
        api_email=email,
        api_token=api_token,
        org_id=org_id,
        checkpoint_path=checkpoint,
        from_date=from_date,
        query_filter=query_filter,
        page_size=page_size,
        sleep_ms=sleep_ms,
        log_format=log_format,
        debug=debug or None,
    )
    logger = setup_logging(settings.effective_log_level, settings.log_format)
    emitter = JsonLinesEmitter() if jsonl else LogEmitter(logger.getChild("records"))

    try:
        stats = asyncio.run(run_export(settings, emitter=emitter, logger=logger))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=1) from e
    except AuditFeedError as e:
        logger.error(f"Export failed: {e}", exc_info=logger.isEnabledFor(logging.DEBUG))
        raise typer.Exit(code=1) from e

    logger.info(
        f"Run summary: {stats.pages} pages, {stats.records_emitted} emitted, "
        f"{stats.records_dropped} dropped, {stats.records_unparsed} unparsed, "
        f"{stats.throttles} throttles",
        extra={"duration_ms": round(stats.duration_ms, 1), "source": stats.source},
    )


@app.command("show-checkpoint")
def show_checkpoint(
    checkpoint: Path | None = typer.Option(None, help="Checkpoint file"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """Show the stored checkpoint."""
    settings = _load_settings(checkpoint_path=checkpoint)
    store = FileCheckpointStore(settings.checkpoint_path)

    try:
        stored = asyncio.run(store.read())
    except CheckpointError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e

    if stored is None:
        console.print(f"No checkpoint at {settings.checkpoint_path}")
        return

    if as_json:
        console.print_json(json.dumps(stored.to_dict()))
        return

    table = Table(title=str(settings.checkpoint_path))
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("watermark", format_timestamp(stored.watermark))
    table.add_row("position", repr(stored.position))
    window = stored.window
    if window is not None:
        table.add_row(
            "window", f"{format_timestamp(window.start)} .. {format_timestamp(window.end)}"
        )
    table.add_row("in progress", "yes" if stored.in_progress else "no")
    console.print(table)


@app.command("reset-checkpoint")
def reset_checkpoint(
    checkpoint: Path | None = typer.Option(None, help="Checkpoint file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete the stored checkpoint so the next run starts from the lookback window."""
    settings = _load_settings(checkpoint_path=checkpoint)
    if not yes:
        typer.confirm(f"Delete {settings.checkpoint_path}?", abort=True)

    store = FileCheckpointStore(settings.checkpoint_path)
    if asyncio.run(store.delete()):
        console.print(f"Deleted {settings.checkpoint_path}")
    else:
        console.print(f"No checkpoint at {settings.checkpoint_path}")


if __name__ == "__main__":
    app()
