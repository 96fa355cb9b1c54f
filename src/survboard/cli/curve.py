# Copyright (c) Syntropy Systems
"""survboard curve command."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from survboard.cli._common import load_table
from survboard.config import load_config
from survboard.curves import QueryMode
from survboard.errors import SurvboardError
from survboard.session import Session

console = Console()


def curve(
    file: Path = typer.Argument(..., help="Patient table (.csv, .xlsx or .xls)"),
    patient: str = typer.Argument(..., help="Patient ID (or Patient_N for unlabelled rows)"),
    at: Optional[list[float]] = typer.Option(
        None,
        "--at", "-a",
        help="Query the curve at this time in days (repeatable)",
    ),
    mode: QueryMode = typer.Option(
        QueryMode.AS_OF,
        "--mode", "-m",
        help="Read the curve as a step function (as-of) or interpolated",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for placeholder risk scores"),
) -> None:
    """Show one patient's survival curve.

    Without --at, prints the probability at each configured reporting time.
    """
    config = load_config()
    if seed is not None:
        config.seed = seed

    session = Session(config)
    session.dataset = load_table(file)
    try:
        session.predict()
        result = session.result(patient)
    except KeyError:
        console.print(f"[red]Error:[/red] Patient not found: {patient}")
        raise typer.Exit(1)
    except SurvboardError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if at:
        times = list(at)
    else:
        times = [year * config.days_per_year for year in config.timepoints]

    console.print(f"[bold]{result.patient_id}[/bold]  risk score {result.risk_score:.4f}")
    band = result.risk_group
    console.print(f"  Risk group: {band.value if band is not None else '-'}")
    console.print(f"  Samples: {len(result.curve)}  [dim]mode: {mode.value}[/dim]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Day", justify="right")
    table.add_column("S(t)", justify="right")
    for t, probability in result.curve.sample(times, mode):
        table.add_row(f"{t:g}", f"{probability:.3f}")
    console.print(table)
