# Copyright (c) Syntropy Systems
"""survboard predict command."""
from __future__ import annotations

import warnings
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from survboard.cli._common import load_table
from survboard.config import load_config
from survboard.curves import QueryMode
from survboard.errors import MissingRiskReference, SurvboardError
from survboard.export import NO_GROUP, prediction_rows, write_csv
from survboard.session import Session

console = Console()

BAND_STYLES = {"Low": "green", "Intermediate": "yellow", "High": "red"}


def predict(
    file: Path = typer.Argument(..., help="Patient table (.csv, .xlsx or .xls)"),
    bundle: Optional[Path] = typer.Option(
        None,
        "--bundle", "-b",
        help="Model bundle (.joblib, .pkl or .json); demonstration model if omitted",
    ),
    timepoint: Optional[list[float]] = typer.Option(
        None,
        "--timepoint", "-t",
        help="Reporting time in years (repeatable)",
    ),
    mode: Optional[QueryMode] = typer.Option(
        None,
        "--mode", "-m",
        help="Read curves as a step function (as-of) or interpolated",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write predictions to this CSV file",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Seed for placeholder risk scores",
    ),
    raw_ptpm: bool = typer.Option(
        True,
        "--raw-ptpm/--no-raw-ptpm",
        help="Whether pTPM columns hold raw abundances",
    ),
) -> None:
    """Predict risk scores and survival for every patient in a table.

    Examples:
        survboard predict patients.csv
        survboard predict patients.xlsx --bundle model.joblib -t 1 -t 5
        survboard predict patients.csv --mode interpolated -o results.csv

    """
    config = load_config()
    if seed is not None:
        config.seed = seed

    session = Session(config)
    session.dataset = load_table(file)
    session.set_raw_ptpm(raw_ptpm)

    if bundle is not None:
        try:
            session.load_bundle(bundle.name, bundle.read_bytes())
        except (OSError, SurvboardError) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", MissingRiskReference)
        try:
            predictions = session.predict(timepoint or None, mode)
        except (SurvboardError, ValueError) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

    for warning in caught:
        if issubclass(warning.category, MissingRiskReference):
            console.print(f"[yellow]Warning:[/yellow] {warning.message}")

    rows = prediction_rows(predictions)
    table = Table(show_header=True, header_style="bold")
    for header in rows[0]:
        table.add_column(header)
    for row in rows:
        cells = [str(v) for v in row.values()]
        group = str(row["Risk_Group"])
        style = BAND_STYLES.get(group)
        if style:
            cells[2] = f"[{style}]{group}[/{style}]"
        table.add_row(*cells)
    console.print(table)

    summary = session.summary()
    console.print(
        f"[bold]{summary.total}[/bold] patients  "
        f"mean risk {summary.mean_risk or 0.0:.3f}  "
        f"[green]Low {summary.low}[/green]  "
        f"[yellow]Intermediate {summary.intermediate}[/yellow]  "
        f"[red]High {summary.high}[/red]"
        + (f"  {NO_GROUP} {summary.unclassified}" if summary.unclassified else "")
    )

    if output is not None:
        write_csv(rows, output)
        console.print(f"[green]Wrote[/green] {output}")
