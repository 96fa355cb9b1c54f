# Copyright (c) Syntropy Systems
"""survboard inspect command."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from survboard.cli._common import load_table
from survboard.columns import patient_label
from survboard.export import format_cell

console = Console()


def inspect(
    file: Path = typer.Argument(..., help="Patient table (.csv, .xlsx or .xls)"),
    rows: int = typer.Option(10, "--rows", "-n", help="Number of rows to preview"),
) -> None:
    """Show the columns, ID column and first rows of a patient table."""
    dataset = load_table(file)

    console.print(f"[bold]{file.name}[/bold]")
    console.print(f"  Patients: {len(dataset)}")
    console.print(f"  Columns: {len(dataset.columns)}")
    if dataset.id_column:
        console.print(f"  ID column: [cyan]{dataset.id_column}[/cyan]")
    else:
        console.print("  ID column: [dim]none (patients numbered by row)[/dim]")

    for issue in dataset.issues:
        console.print(f"  [yellow]Repaired:[/yellow] {issue}")

    if dataset.is_empty:
        console.print("[dim]No patient rows[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Patient", style="dim")
    for column in dataset.columns:
        table.add_column(column)

    for idx, record in enumerate(dataset.records[:rows]):
        table.add_row(
            patient_label(record, dataset.id_column, idx),
            *(format_cell(record.get(c)) or "-" for c in dataset.columns),
        )

    console.print(table)
    if len(dataset) > rows:
        console.print(f"[dim]... {len(dataset) - rows} more rows[/dim]")
