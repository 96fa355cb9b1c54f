# Copyright (c) Syntropy Systems
"""CLI command for running the survboard API server."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from survboard.config import load_config

console = Console()


def server(
    port: int = typer.Option(8080, "--port", "-p", help="Port to listen on"),
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        "-c",
        help="Directory holding config.yaml (default: nearest .survboard)",
    ),
):
    """
    Start the survboard HTTP API.

    Examples:

        # Serve on localhost
        survboard server

        # Bind to all interfaces
        survboard server --host 0.0.0.0 --port 8080
    """
    try:
        import uvicorn
    except ImportError:
        console.print("[red]Error:[/red] uvicorn is required for server mode.")
        console.print("Install with: pip install survboard[server]")
        raise typer.Exit(1)

    config = load_config(config_dir)

    console.print("[bold]survboard server[/bold]")
    console.print(f"  Host: {host}")
    console.print(f"  Port: {port}")
    console.print(f"  Query mode: {config.query_mode}")
    console.print(f"  Timepoints: {', '.join(f'{t:g}y' for t in config.timepoints)}")
    console.print()

    from ..server.app import create_app

    uvicorn.run(create_app(config), host=host, port=port, log_level="info")
