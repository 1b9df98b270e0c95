"""
TenderWatch CLI - Main entry point.

A terminal-first tender monitor: fetches procurement sites through a
chain of transport fallbacks, extracts matching tenders, and emails a
report.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.traceback import install as install_rich_traceback

from tenderwatch import __app_name__, __version__
from tenderwatch.cli.helpers import configure_logging, load_config_or_exit

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

# Create main app
app = typer.Typer(
    name=__app_name__,
    help="Resilient procurement tender monitor",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """TenderWatch - Procurement tender monitor."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import scan, schedule  # noqa: E402

app.add_typer(scan.app, name="scan", help="Run tender scans")
app.add_typer(schedule.app, name="schedule", help="Run the scheduled batch scan")


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Initialize TenderWatch configuration.

    Creates configs/app.yaml and the logs directory.
    """
    from tenderwatch.core.config.loader import DEFAULT_CONFIG_PATH, write_default_config

    Path("logs").mkdir(parents=True, exist_ok=True)

    if not write_default_config(DEFAULT_CONFIG_PATH, force=force):
        console.print(f"[yellow]Configuration already exists:[/yellow] {DEFAULT_CONFIG_PATH}")
        console.print("[dim]Use --force to overwrite[/dim]")
        return

    console.print()
    console.print(Panel.fit(
        "[bold green]OK - TenderWatch initialized successfully![/bold green]\n\n"
        "Created:\n"
        f"  - [cyan]{DEFAULT_CONFIG_PATH}[/cyan] - Application configuration\n"
        "  - [cyan]logs/[/cyan] - Log files\n\n"
        "Next steps:\n"
        "  1. Set [yellow]GEMINI_API_KEY[/yellow] and [yellow]RESEND_API_KEY[/yellow] in .env\n"
        "  2. Check a source: [yellow]tenderwatch fetch <url>[/yellow]\n"
        "  3. Run a scan: [yellow]tenderwatch scan run[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Sources Command
# =============================================================================


@app.command()
def sources(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """List configured sources and the transport strategy chain."""
    config = load_config_or_exit(config_path)

    table = Table(title="Sources", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("URL")
    table.add_column("Status", justify="center")

    for source in config.sources:
        status = "[green]OK[/green]" if source.enabled else "[red]x[/red]"
        table.add_row(source.id, source.name, source.url, status)

    console.print(table)
    console.print()

    strategies = Table(title="Transport Strategies", show_header=True, header_style="bold magenta")
    strategies.add_column("#", justify="right")
    strategies.add_column("Name", style="cyan", no_wrap=True)
    strategies.add_column("Kind")
    strategies.add_column("Endpoint")

    for i, strategy in enumerate(config.transport.strategies, 1):
        endpoint = strategy.endpoint or "[dim]-[/dim]"
        if strategy.via:
            endpoint += f" [dim](via {strategy.via})[/dim]"
        strategies.add_row(str(i), strategy.name, strategy.kind.value, endpoint)

    console.print(strategies)


# =============================================================================
# Fetch Command
# =============================================================================


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL to acquire"),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
    show: int = typer.Option(
        500,
        "--show",
        "-n",
        help="Characters of content to preview",
    ),
) -> None:
    """Acquire one URL through the strategy chain and preview it."""
    from tenderwatch.core.fetch import FallbackFetcher

    config = load_config_or_exit(config_path)
    configure_logging(config)

    async def _acquire():
        fetcher = FallbackFetcher.from_config(config.transport)
        try:
            return await fetcher.acquire(url)
        finally:
            await fetcher.close()

    result = asyncio.run(_acquire())

    if not result.ok:
        err_console.print(f"[red]{result.message}[/red]")
        for name, error in result.attempted_errors:
            err_console.print(f"  [dim]{name}:[/dim] {error}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] Fetched via [cyan]{result.strategy_used}[/cyan] "
                  f"({len(result.content)} chars)")
    if show > 0:
        console.print(Panel(Text(result.content[:show]), title="Preview", border_style="dim"))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
