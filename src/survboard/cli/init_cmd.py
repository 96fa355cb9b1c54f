# Copyright (c) Syntropy Systems
"""survboard init command."""

from pathlib import Path

import typer
from rich.console import Console

from survboard.config import CONFIG_DIRNAME, write_default_config

console = Console()


def init(
    path: Path = typer.Argument(
        Path(),
        help="Directory to initialize (default: current directory)",
    ),
) -> None:
    """Initialize a survboard project.

    Creates a .survboard directory holding the default config.yaml.
    """
    config_dir = path.resolve() / CONFIG_DIRNAME

    if config_dir.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {config_dir}")
        return

    config_dir.mkdir(parents=True)
    config_path = write_default_config(config_dir)

    console.print(f"[green]Initialized survboard project:[/green] {config_dir}")
    console.print(f"  [dim]config:[/dim] {config_path}")
