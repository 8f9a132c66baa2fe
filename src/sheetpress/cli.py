"""CLI interface for sheetpress."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sheetpress.config import (
    RunContext,
    build_run_context,
    load_config,
    merge_cli_overrides,
)
from sheetpress.errors import SheetpressError
from sheetpress.generator import ClaudeGenerator
from sheetpress.git import GitRepo
from sheetpress.pipeline import run_pipeline
from sheetpress.site import sync_contact, sync_nav, synchronize
from sheetpress.tasks import SheetsTaskQueue, fetch_actionable_tasks

app = typer.Typer(
    name="sheetpress",
    help="Publish queued pages from a Google Sheet and keep site rollups in sync.",
)

console = Console()

RootOption = Annotated[
    Path,
    typer.Option(
        "--root",
        "-r",
        help="Repository root to publish into.",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to a .sheetpress.toml file."),
]
DateOption = Annotated[
    Optional[str],
    typer.Option("--date", help="Run date (YYYY-MM-DD). Defaults to today."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-V", help="Enable debug logging."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from sheetpress import __version__

        console.print(f"sheetpress {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Sheetpress - spreadsheet-driven static page publishing."""


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_date(raw: str | None) -> date | None:
    if raw is None:
        return None
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid date format: {raw}")
        console.print("Use YYYY-MM-DD format (e.g., 2026-01-15)")
        raise typer.Exit(1) from None


def _context(
    root: Path,
    config_path: Path | None,
    run_date: str | None,
    *,
    require_queue: bool,
    **overrides: object,
) -> RunContext:
    try:
        config = merge_cli_overrides(load_config(config_path, root=root), **overrides)
        return build_run_context(
            config, root=root, today=_parse_date(run_date), require_queue=require_queue
        )
    except SheetpressError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from None


def _queue(ctx: RunContext) -> SheetsTaskQueue:
    return SheetsTaskQueue(
        ctx.config.queue.sheet_id,
        ctx.config.queue.sheet_name,
        ctx.credentials_path,
        retry_policy=ctx.config.retry,
    )


@app.command()
def run(
    root: RootOption = Path("."),
    config: ConfigOption = None,
    run_date: DateOption = None,
    model: Annotated[
        Optional[str], typer.Option("--model", "-m", help="Claude model for generation.")
    ] = None,
    max_turns: Annotated[
        Optional[int], typer.Option("--max-turns", help="Max generator turns.")
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Run the full pipeline: queue → generate → rollups → commit → status."""
    _setup_logging(verbose)
    ctx = _context(
        root, config, run_date, require_queue=True, model=model, max_turns=max_turns
    )

    result = run_pipeline(
        ctx,
        queue=_queue(ctx),
        generator=ClaudeGenerator(ctx.config.generation, ctx.config.site, ctx.root),
        git=GitRepo(ctx.root),
    )

    if result.statuses:
        table = Table(title="Task status")
        table.add_column("Task")
        table.add_column("Status")
        for task_id, status in result.statuses.items():
            colour = "green" if status == "PUBLISHED" else "red"
            table.add_row(task_id, f"[{colour}]{status.value}[/{colour}]")
        console.print(table)

    if result.report.warnings or result.report.errors:
        console.print(result.report.summary())

    if result.failed:
        console.print(f"[red]Run failed at {result.failed_stage}:[/red] {result.failure}")
        raise typer.Exit(result.exit_code)

    processed = len(result.batch) if result.batch else 0
    console.print("[bold green]Publish run complete![/bold green]")
    console.print(f"  Processed: {processed} task(s)")
    console.print(f"  Date: {ctx.today_iso}")


@app.command()
def sync(
    root: RootOption = Path("."),
    config: ConfigOption = None,
    run_date: DateOption = None,
    no_git: Annotated[
        bool,
        typer.Option("--no-git", help="Use filesystem timestamps only."),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Rebuild the blog index, homepage cards, and sitemap from pages on disk."""
    _setup_logging(verbose)
    ctx = _context(root, config, run_date, require_queue=False)
    try:
        result = synchronize(ctx, git=None if no_git else GitRepo(ctx.root))
    except SheetpressError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from None

    console.print(f"[green]Synced {result.items} post(s)[/green]")
    console.print(f"  blog index updated: {result.index_updated}")
    console.print(f"  homepage updated: {result.home_updated}")
    console.print(f"  sitemap written: {result.sitemap_written}")
    console.print(f"  nav files changed: {result.nav_files_changed}")


@app.command()
def nav(
    root: RootOption = Path("."),
    verbose: VerboseOption = False,
) -> None:
    """Ensure Roadmaps and Contact links exist in every page's menus."""
    _setup_logging(verbose)
    changed = sync_nav(root)
    console.print(f"nav sync done. files changed: {changed}")


@app.command()
def contact(
    root: RootOption = Path("."),
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Apply contact details from site-config.json across pages."""
    _setup_logging(verbose)
    ctx = _context(root, config, None, require_queue=False)
    try:
        changed = sync_contact(ctx.root, domain=ctx.config.site.domain)
    except SheetpressError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from None
    console.print(f"contact sync done. files changed: {changed}")


@app.command()
def tasks(
    root: RootOption = Path("."),
    config: ConfigOption = None,
    run_date: DateOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List the tasks a run would process, without side effects."""
    _setup_logging(verbose)
    ctx = _context(root, config, run_date, require_queue=True)
    try:
        _, actionable = fetch_actionable_tasks(_queue(ctx), ctx.today_iso)
    except SheetpressError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from None

    if not actionable:
        console.print(f"[yellow]No READY tasks due by {ctx.today_iso}.[/yellow]")
        return

    table = Table(title=f"Actionable tasks ({ctx.today_iso})")
    for column in ("Row", "Id", "Type", "Slug", "Title", "Publish date"):
        table.add_column(column)
    for t in actionable:
        table.add_row(str(t.row_number), t.id, t.type, t.slug, t.title, t.publish_date)
    console.print(table)


if __name__ == "__main__":
    app()
