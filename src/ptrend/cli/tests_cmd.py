# Copyright (c) Syntropy Systems
"""ptrend tests and show commands."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from ptrend.cli.common import DB_HELP, SOURCE_HELP, check_source, console, existing_db
from ptrend.db import (
    count_labels,
    get_connection,
    get_request_statistics,
    get_test,
    get_tests,
)
from ptrend.render import format_cell


def tests(
    source: str = typer.Option("jmeter", "--source", "-s", help=SOURCE_HELP),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_HELP),
) -> None:
    """List stored tests in report column order."""
    check_source(source)
    db_path = existing_db(db)
    conn = get_connection(db_path)

    try:
        test_list = get_tests(conn, source)
        label_counts = count_labels(conn)
    finally:
        conn.close()

    if not test_list:
        console.print("[dim]No tests found[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Description", style="cyan")
    table.add_column("Type")
    table.add_column("Requests")
    table.add_column("Created")

    for test in test_list:
        table.add_row(
            str(test.id),
            escape(test.description),
            test.type_name,
            str(label_counts.get(test.id, "-")),
            test.created_at or "-",
        )

    console.print(table)


def show(
    test_id: int = typer.Argument(..., help="Test ID to show statistics for"),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_HELP),
) -> None:
    """Show the per-request statistics stored for one load test."""
    db_path = existing_db(db)
    conn = get_connection(db_path)

    try:
        test = get_test(conn, test_id)
        records = get_request_statistics(conn, test_id) if test else []
    finally:
        conn.close()

    if test is None:
        console.print(f"[red]Error:[/red] Test #{test_id} not found")
        raise typer.Exit(1)

    console.print(f"\n[bold]Test #{test.id}[/bold] {escape(test.description)}")
    console.print(f"  [dim]type:[/dim] {test.type_name}")
    console.print(f"  [dim]created:[/dim] {test.created_at or '-'}")

    if not records:
        console.print("[dim]No request statistics stored[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Request", style="cyan")
    for column in ("Samples", "Average", "Median", "90%", "95%", "Min", "Max"):
        table.add_column(column, justify="right")

    for rs in records:
        table.add_row(
            escape(rs.label),
            str(rs.samples),
            *(format_cell(v) for v in (rs.average, rs.median, rs.perc90, rs.perc95)),
            str(rs.min),
            str(rs.max),
        )

    console.print(table)
