# Copyright (c) Syntropy Systems
"""Export command - export trends data to CSV/JSON."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ptrend.cli.common import DB_HELP, SOURCE_HELP, check_source, console, existing_db, open_config
from ptrend.config import validate_delimiter
from ptrend.db import build_matrix, get_connection
from ptrend.errors import ConfigError
from ptrend.render import matrix_to_json, write_csv


def export(
    output: Path = typer.Option(
        Path("export.csv"),
        "--name", "-n",
        help="Output file path (.csv or .json)",
    ),
    metric: Optional[str] = typer.Option(
        None,
        "--metric", "-m",
        help="Metric to export to CSV (load tests) or summary view (avg, std, med)",
    ),
    delimiter: Optional[str] = typer.Option(
        None,
        "--delimiter", "-d",
        help="Single character to be used as CSV delimiter",
    ),
    source: str = typer.Option("jmeter", "--source", "-s", help=SOURCE_HELP),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_HELP),
) -> None:
    """Export all trends data: one row per request, one column per test.

    CSV holds a single metric and leaves cells empty where a test has no data
    for a request. JSON holds every metric with null for missing data.

    Examples:
        ptrend export --metric perc95
        ptrend export --name trends.json

    """
    check_source(source)
    config = open_config()

    suffix = output.suffix.lower()
    if suffix not in [".csv", ".json"]:
        console.print("[red]Output must be .csv or .json[/red]")
        raise typer.Exit(1)

    if output.is_dir():
        console.print("[red]Error:[/red] Output file path is invalid")
        raise typer.Exit(1)

    try:
        delimiter = validate_delimiter(delimiter if delimiter is not None else config.delimiter)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

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

    if not matrix.run_descriptions:
        console.print("[yellow]No tests to export[/yellow]")
        raise typer.Exit(0)

    if suffix == ".json":
        _ = output.write_text(matrix_to_json(matrix), encoding="utf-8")
    else:
        if metric not in matrix.metrics:
            console.print(
                f"[red]Error:[/red] Metric is not one of the following: {matrix.metrics}"
            )
            raise typer.Exit(1)
        with output.open("w", newline="", encoding="utf-8") as f:
            _ = write_csv(matrix, f, metric, delimiter)

    console.print(
        f"[green]Exported {len(matrix.rows)} request(s) x "
        f"{matrix.width} test(s) to {escape(str(output))}[/green]"
    )
    for error in matrix.errors:
        console.print(f"[yellow]Skipped:[/yellow] {escape(str(error))}")
