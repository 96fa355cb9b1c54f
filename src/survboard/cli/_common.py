# Copyright (c) Syntropy Systems
"""Helpers shared by the commands that read patient tables."""
from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.console import Console

from survboard.errors import SurvboardError
from survboard.parsing import read_path

if TYPE_CHECKING:
    from pathlib import Path

    from survboard.models.dataset import Dataset

console = Console()


def load_table(path: Path) -> Dataset:
    """Read a patient table or exit with a message."""
    if not path.is_file():
        console.print(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)
    try:
        return read_path(path)
    except (SurvboardError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
