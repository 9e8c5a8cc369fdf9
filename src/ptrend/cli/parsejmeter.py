# Copyright (c) Syntropy Systems
"""parsejmeter command - aggregate JMeter logs into a new load test."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ptrend.cli.common import DB_HELP, console, open_config
from ptrend.config import resolve_db_path, validate_delimiter, validate_ignore_pattern
from ptrend.db import get_connection, init_db, store_load_test
from ptrend.errors import ConfigError, DuplicateDescription, IngestError
from ptrend.ingest.jmeter import normalize_description, read_logs
from ptrend.stats import aggregate_all


def parsejmeter(
    description: str = typer.Argument(..., help="Unique description of this test run"),
    inputs: list[Path] = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JMeter CSV log file(s) of the run",
    ),
    delimiter: Optional[str] = typer.Option(
        None,
        "--delimiter", "-d",
        help="Single character used as delimiter in the logs",
    ),
    field_names: Optional[bool] = typer.Option(
        None,
        "--field-names/--no-field-names", "-f",
        help="Logs start with a header line with field names",
    ),
    ignore_pattern: Optional[str] = typer.Option(
        None,
        "--ignore-pattern", "-i",
        help="Labels matching this regex are ignored",
    ),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_HELP),
) -> None:
    """Parse JMeter log files and store per-request statistics as a new test.

    Example:
        ptrend parsejmeter "release 1.4" results/run1.csv results/run2.csv

    """
    config = open_config()
    try:
        delimiter = validate_delimiter(delimiter if delimiter is not None else config.delimiter)
        ignore = validate_ignore_pattern(
            ignore_pattern if ignore_pattern is not None else config.ignore_pattern
        )
        db_path = resolve_db_path(db)
    except (ConfigError, RuntimeError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if field_names is None:
        field_names = config.field_names

    description = normalize_description(description)
    if not description:
        console.print("[red]Error:[/red] Test description must not be empty")
        raise typer.Exit(1)

    try:
        sample_set = read_logs(inputs, delimiter, field_names, ignore)
    except IngestError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    records, skipped = aggregate_all(sample_set.samples)
    if not records:
        console.print("[red]Error:[/red] No samples found in the provided logs")
        raise typer.Exit(1)

    init_db(db_path)
    conn = get_connection(db_path)
    try:
        test_id = store_load_test(conn, description, records)
    except DuplicateDescription as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    finally:
        conn.close()

    console.print(f"[green]Stored test #{test_id}:[/green] {escape(description)}")
    console.print(f"  [dim]requests:[/dim] {len(records)}")
    console.print(f"  [dim]samples:[/dim] {sample_set.sample_count}")
    if sample_set.ignored:
        console.print(f"  [dim]ignored:[/dim] {sample_set.ignored}")
    if sample_set.malformed:
        console.print(
            f"  [yellow]malformed rows skipped:[/yellow] {sample_set.malformed}"
        )
    if skipped:
        console.print(
            f"  [yellow]labels without samples:[/yellow] {escape(', '.join(skipped))}"
        )
