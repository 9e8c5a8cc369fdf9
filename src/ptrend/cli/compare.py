# Copyright (c) Syntropy Systems
"""Compare command - compare tests side by side against a baseline."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from ptrend.cli.common import DB_HELP, SOURCE_HELP, check_source, console, existing_db, open_config
from ptrend.db import build_matrix, get_connection
from ptrend.render import compare_to_baseline, format_cell


def _resolve_columns(selectors: list[str], descriptions: list[str]) -> list[int]:
    """Turn test descriptions (or description prefixes) into column indexes."""
    columns: list[int] = []
    for selector in selectors:
        if selector in descriptions:
            columns.append(descriptions.index(selector))
            continue
        matches = [i for i, d in enumerate(descriptions) if d.startswith(selector)]
        if not matches:
            console.print(f"[red]Test not found: {escape(selector)}[/red]")
            raise typer.Exit(1)
        if len(matches) > 1:
            console.print(
                f"[yellow]Ambiguous test '{escape(selector)}', using first match[/yellow]"
            )
        columns.append(matches[0])
    return columns


def compare(
    test_descriptions: list[str] = typer.Argument(
        ...,
        help="Tests to compare (2 or more), the first one is the baseline",
    ),
    metric: Optional[str] = typer.Option(
        None,
        "--metric", "-m",
        help="Metric to compare (load tests) or summary view (avg, std, med)",
    ),
    source: str = typer.Option("jmeter", "--source", "-s", help=SOURCE_HELP),
    label: Optional[str] = typer.Option(
        None,
        "--label", "-l",
        help="Only show requests containing this text",
    ),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_HELP),
) -> None:
    """Compare tests side by side, with the change against the first test.

    Example:
        ptrend compare "release 1.3" "release 1.4" --metric perc90

    """
    if len(test_descriptions) < 2:
        console.print("[red]Need at least 2 tests to compare[/red]")
        raise typer.Exit(1)

    check_source(source)
    config = open_config()
    kind = config.wpt_kind
    if source == "wpt":
        kind = metric or kind
        metric = kind
    else:
        metric = metric or config.metric

    db_path = existing_db(db)
    conn = get_connection(db_path)
    try:
        try:
            matrix = build_matrix(conn, source, kind)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from e
    finally:
        conn.close()

    if metric not in matrix.metrics:
        console.print(
            f"[red]Error:[/red] Metric is not one of the following: {matrix.metrics}"
        )
        raise typer.Exit(1)

    columns = _resolve_columns(test_descriptions, matrix.run_descriptions)
    baseline = columns[0]

    console.print(f"\n[bold]Comparing {len(columns)} tests ({metric})[/bold]\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Request", style="dim")
    for index in columns:
        table.add_column(escape(matrix.run_descriptions[index]), style="cyan", justify="right")

    shown = 0
    for row in matrix.sorted_rows():
        if label and label not in row.label:
            continue
        values: list[str] = []
        for cell in compare_to_baseline(row, metric, baseline, columns):
            text = format_cell(cell.value, "-")
            if cell.change is not None and cell.change != 0:
                color = "red" if cell.change > 0 else "green"
                text = f"{text} [{color}]({cell.change:+d}%)[/{color}]"
            values.append(text)
        table.add_row(escape(row.label), *values)
        shown += 1

    if shown:
        console.print(table)
    else:
        console.print("[dim]No requests to compare[/dim]")

    for error in matrix.errors:
        console.print(f"[yellow]Skipped:[/yellow] {escape(str(error))}")
