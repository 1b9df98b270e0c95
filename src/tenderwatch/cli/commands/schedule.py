"""
Schedule commands for the batch scan.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from tenderwatch.cli.helpers import configure_logging, load_config_or_exit
from tenderwatch.core.models import ScanPhase

from .scan import _show_summary, _show_tenders

console = Console()

app = typer.Typer(
    help="Run the scheduled batch scan",
    no_args_is_help=True,
)


@app.command("start")
def start_scheduler(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Start the scheduler service.

    Runs as a foreground process. Use Ctrl+C to stop.
    """
    from tenderwatch.core.scheduler import SchedulerService

    config = load_config_or_exit(config_path)
    configure_logging(config)

    console.print("[bold]Starting scheduler service...[/bold]")
    console.print(
        f"[dim]Cron:[/dim] {config.scheduler.cron} ({config.scheduler.timezone}), "
        f"[dim]mode:[/dim] {config.scheduler.mode.value}"
    )
    console.print("[dim]Press Ctrl+C to stop[/dim]")
    console.print()

    asyncio.run(SchedulerService(config, config_path).start())


@app.command("trigger")
def trigger_now(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Run one batch scan now and wait for it."""
    from tenderwatch.core.scheduler import SchedulerService

    config = load_config_or_exit(config_path)
    configure_logging(config)

    console.print("[bold]Triggering batch scan...[/bold]")
    result = asyncio.run(SchedulerService(config, config_path).trigger_now())
    if result is None:
        console.print("[yellow]No sources enabled, nothing to scan[/yellow]")
        return

    console.print()
    _show_tenders(result.tenders)
    _show_summary(result)

    if result.status.phase == ScanPhase.ERROR:
        raise typer.Exit(1)
