# Copyright (c) Syntropy Systems
"""Main CLI entry point for survboard."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from survboard.cli.curve import curve
from survboard.cli.init_cmd import init
from survboard.cli.inspect_cmd import inspect
from survboard.cli.predict import predict
from survboard.cli.server_cmd import server

app = typer.Typer(
    name="survboard",
    help=(
        "Patient survival dashboard. Load a patient table, score it, "
        "read survival curves."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# Register commands
_ = app.command()(init)
_ = app.command()(inspect)
_ = app.command()(predict)
_ = app.command()(curve)
_ = app.command()(server)


if __name__ == "__main__":
    app()
