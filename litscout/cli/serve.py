"""Serve command: run the HTTP API."""

from pathlib import Path
from typing import Optional

import typer

from litscout.cli.utils import CONFIG_OPTION, handle_errors


@handle_errors
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", help="Port to bind to"),
    config_path: Optional[Path] = CONFIG_OPTION,
):
    """Run the newsreader HTTP API."""
    from litscout.api.server import run_server

    run_server(
        host=host,
        port=port,
        config_path=str(config_path) if config_path else None,
    )
