# Copyright (c) Syntropy Systems
"""Main CLI entry point for ptrend."""

import logging

import typer

from ptrend.cli.compare import compare
from ptrend.cli.export import export
from ptrend.cli.generate import generate
from ptrend.cli.init_cmd import init
from ptrend.cli.parsejmeter import parsejmeter
from ptrend.cli.parsewpt import parsewpt
from ptrend.cli.tests_cmd import show, tests

app = typer.Typer(
    name="ptrend",
    help=(
        "Performance trends. Parse load test and WebPageTest results, "
        "compare requests across test runs."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Log debug details to stderr",
    ),
) -> None:
    """Performance trends across test runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register commands
_ = app.command()(init)
_ = app.command()(parsejmeter)
_ = app.command()(parsewpt)
_ = app.command()(tests)
_ = app.command()(show)
_ = app.command()(compare)
_ = app.command(name="export")(export)
_ = app.command()(generate)


if __name__ == "__main__":
    app()
