# Copyright (c) Syntropy Systems
"""Helpers shared by ptrend commands."""
from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.markup import escape

from ptrend.config import PtrendConfig, load_config, resolve_db_path
from ptrend.errors import ConfigError
from ptrend.models.stats import TEST_TYPE_IDS

if TYPE_CHECKING:
    from pathlib import Path

console = Console()

DB_HELP = "Database file to use instead of the project database"
SOURCE_HELP = f"Test type to report on: {list(TEST_TYPE_IDS)}"


def open_config() -> PtrendConfig:
    """Load the project config, exiting with a message if it is invalid."""
    try:
        return load_config()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


def existing_db(db: Path | None) -> Path:
    """Resolve the database path and require the file to exist."""
    try:
        db_path = resolve_db_path(db)
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if not db_path.exists():
        console.print(f"[red]Error:[/red] Database not found: {escape(str(db_path))}")
        raise typer.Exit(1)
    return db_path


def check_source(source: str) -> str:
    if source not in TEST_TYPE_IDS:
        console.print(
            f"[red]Error:[/red] Test type is not one of the following: {list(TEST_TYPE_IDS)}"
        )
        raise typer.Exit(1)
    return source
