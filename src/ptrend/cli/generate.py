# Copyright (c) Syntropy Systems
"""Generate command - build the HTML trends report."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ptrend.cli.common import DB_HELP, SOURCE_HELP, check_source, console, existing_db, open_config
from ptrend.db import build_matrix, get_connection
from ptrend.render import render_html

REPORT_FILE_NAME = "index.html"


def generate(
    output: Path = typer.Option(
        Path(),
        "--output", "-o",
        help="Existing directory to write index.html into",
    ),
    source: str = typer.Option("jmeter", "--source", "-s", help=SOURCE_HELP),
    kind: Optional[str] = typer.Option(
        None,
        "--kind", "-k",
        help="WebPageTest summary view to report (avg, std, med)",
    ),
    title: str = typer.Option(
        "Performance Trends Report",
        "--title",
        help="Report page title",
    ),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_HELP),
) -> None:
    """Generate a trends report from parsed data.

    Example:
        ptrend generate --output reports/

    """
    check_source(source)
    config = open_config()

    if not output.is_dir():
        console.print(
            "[red]Error:[/red] Output path is invalid. Should be an existing directory"
        )
        raise typer.Exit(1)

    db_path = existing_db(db)
    conn = get_connection(db_path)
    try:
        try:
            matrix = build_matrix(conn, source, kind or config.wpt_kind)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from e
    finally:
        conn.close()

    default_metric = config.metric if source == "jmeter" else None
    report_path = output / REPORT_FILE_NAME
    _ = report_path.write_text(
        render_html(matrix, title=title, default_metric=default_metric),
        encoding="utf-8",
    )

    console.print(f"[green]Report written:[/green] {escape(str(report_path))}")
    console.print(f"  [dim]tests:[/dim] {matrix.width}")
    console.print(f"  [dim]requests:[/dim] {len(matrix.rows)}")
    for error in matrix.errors:
        console.print(f"[yellow]Skipped:[/yellow] {escape(str(error))}")
