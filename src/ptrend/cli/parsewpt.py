# Copyright (c) Syntropy Systems
"""parsewpt command - store a WebPageTest result as a new test."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ptrend.cli.common import DB_HELP, console
from ptrend.config import resolve_db_path
from ptrend.db import get_connection, init_db, store_wpt_test
from ptrend.errors import DuplicateDescription, IngestError
from ptrend.ingest.wpt import read_wpt


def parsewpt(
    input_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="WebPageTest JSON result file",
    ),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_HELP),
) -> None:
    """Parse a WebPageTest results file into the database.

    The test is described as "<test id> (<location>)".
    """
    try:
        db_path = resolve_db_path(db)
        document = read_wpt(input_path)
    except (IngestError, RuntimeError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    init_db(db_path)
    conn = get_connection(db_path)
    try:
        test_id = store_wpt_test(conn, document.description, document.views())
    except DuplicateDescription as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    finally:
        conn.close()

    console.print(f"[green]Stored test #{test_id}:[/green] {escape(document.description)}")
