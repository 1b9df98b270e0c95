"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from tenderwatch.core.config import AppConfig, ConfigError, load_app_config
from tenderwatch.core.logging import setup_logging

err_console = Console(stderr=True)


def load_config_or_exit(config_path: Optional[Path]) -> AppConfig:
    """Load app config, printing a readable error on failure."""
    try:
        return load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(1)


def configure_logging(config: AppConfig) -> None:
    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )
