# Copyright (c) Syntropy Systems
"""ptrend init command."""

from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.markup import escape

from ptrend.config import CONFIG_FILE_NAME, DB_FILE_NAME, PROJECT_DIR_NAME, PtrendConfig
from ptrend.db import init_db

console = Console()


def init(
    path: Path = typer.Argument(
        Path(),
        help="Directory to initialize (default: current directory)",
    ),
) -> None:
    """Initialize a new ptrend project.

    Creates a .ptrend directory with configuration and database.
    """
    target = path.resolve()
    ptrend_dir = target / PROJECT_DIR_NAME

    if ptrend_dir.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {escape(str(ptrend_dir))}")
        return

    ptrend_dir.mkdir(parents=True)

    config_path = ptrend_dir / CONFIG_FILE_NAME
    with config_path.open("w") as f:
        yaml.dump(PtrendConfig().to_dict(), f, default_flow_style=False)

    db_path = ptrend_dir / DB_FILE_NAME
    init_db(db_path)

    console.print(f"[green]Initialized ptrend project:[/green] {escape(str(ptrend_dir))}")
    console.print(f"  [dim]config:[/dim] {escape(str(config_path))}")
    console.print(f"  [dim]database:[/dim] {escape(str(db_path))}")
