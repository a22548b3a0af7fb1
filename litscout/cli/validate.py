"""Validate command for configuration files."""

from pathlib import Path

import typer

from litscout.services.config_manager import ConfigManager
from litscout.cli.utils import handle_errors, display_success, display_error


@handle_errors
def validate_command(
    config_path: Path = typer.Argument(..., help="Config file to validate"),
):
    """Validate configuration file syntax and semantics."""
    try:
        config = ConfigManager(config_path=str(config_path)).load_config()
    except Exception as e:
        display_error(f"Validation failed: {e}")
        raise typer.Exit(code=1)

    enabled = [s.value for s, v in config.sources.items() if v.enabled]
    display_success("Configuration is valid!")
    typer.echo(f"Queries: {len(config.queries)}")
    typer.echo(f"Enabled sources: {', '.join(enabled) or 'none'}")
    typer.echo(f"Storage: {config.storage.backend} ({config.storage.path})")
