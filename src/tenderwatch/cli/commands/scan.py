"""
Scan commands for running tender scans.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from tenderwatch.cli.helpers import configure_logging, load_config_or_exit
from tenderwatch.core.config import ExecutionMode
from tenderwatch.core.models import ScanPhase

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Run tender scans",
    no_args_is_help=True,
)


@app.command("run")
def run_scan(
    mode: Optional[ExecutionMode] = typer.Option(
        None,
        "--mode",
        "-m",
        help="Fan-out policy (default from config)",
        case_sensitive=False,
    ),
    notify: bool = typer.Option(
        True,
        "--notify/--no-notify",
        help="Email the report when tenders are found",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Scan every enabled source once.

    Examples:
        tenderwatch scan run
        tenderwatch scan run --mode concurrent --no-notify
    """
    from tenderwatch.core.orchestrator import ScanEvent, ScanState, build_runner

    config = load_config_or_exit(config_path)
    configure_logging(config)

    sources = config.enabled_sources()
    if not sources:
        err_console.print("[red]No enabled sources configured[/red]")
        raise typer.Exit(1)

    console.print()
    console.print(f"[bold]Starting scan of {len(sources)} sources[/bold]")
    if not notify:
        console.print("[yellow]Notification disabled - report will not be sent[/yellow]")
    console.print()

    state = ScanState()
    runner = build_runner(config, mode=mode, notify=notify, state=state)

    async def _run():
        try:
            return await runner.run(sources)
        finally:
            await runner.close()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Initializing Scan...[/cyan]", total=100)

        def on_event(event: ScanEvent) -> None:
            if event.kind == "status":
                progress.update(
                    task,
                    completed=event.status.progress,
                    description=f"[cyan]{event.status.current_task}[/cyan]",
                )

        unsubscribe = state.subscribe(on_event)
        try:
            result = asyncio.run(_run())
        finally:
            unsubscribe()

    console.print()
    _show_tenders(result.tenders)
    _show_summary(result)

    if result.status.phase == ScanPhase.ERROR:
        raise typer.Exit(1)


def _show_tenders(tenders) -> None:
    if not tenders:
        console.print("[dim]No recent tenders found.[/dim]")
        return

    table = Table(title="Tenders", show_header=True, header_style="bold magenta")
    table.add_column("Title", style="cyan", max_width=50)
    table.add_column("Source")
    table.add_column("Keywords")
    table.add_column("Date")
    table.add_column("URL", overflow="fold")

    for tender in tenders:
        table.add_row(
            tender.title,
            tender.source,
            ", ".join(sorted(tender.keywords_found)),
            tender.date_string or "[dim]-[/dim]",
            tender.url,
        )

    console.print(table)


def _show_summary(result) -> None:
    """Show scan summary."""
    console.print()

    table = Table(title="Scan Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    phase = result.status.phase
    style = {"complete": "green", "error": "red"}.get(phase.value, "yellow")
    table.add_row("Status", f"[{style}]{phase.value}[/{style}]")
    table.add_row("Tenders", str(len(result.tenders)))
    table.add_row("Failed sources", ", ".join(result.failed_sources) or "[dim]none[/dim]")

    if result.notification is not None:
        delivered = "sent" if result.notification.delivered else "failed"
        table.add_row("Notification", f"{result.notification.method} ({delivered})")

    if result.duration_seconds is not None:
        table.add_row("Duration", f"{result.duration_seconds:.1f}s")

    console.print(table)

    if result.status.message and phase == ScanPhase.ERROR:
        err_console.print(f"[red]{result.status.message}[/red]")
