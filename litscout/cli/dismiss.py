"""Dismiss command: permanently hide an article from discovery."""

from pathlib import Path
from typing import Optional

import typer

from litscout.cli.utils import (
    CONFIG_OPTION,
    display_error,
    display_success,
    handle_errors,
    run_with_newsreader,
)


@handle_errors
def dismiss_command(
    doi: Optional[str] = typer.Option(None, "--doi", help="DOI"),
    title: Optional[str] = typer.Option(None, "--title", help="Article title"),
    url: Optional[str] = typer.Option(None, "--url", help="Landing page URL"),
    config_path: Optional[Path] = CONFIG_OPTION,
):
    """Dismiss an article so discovery never shows it again."""
    if not doi and not title:
        display_error("Provide --doi or --title")
        raise typer.Exit(code=1)

    article = {"doi": doi, "title": title, "url": url}
    result = run_with_newsreader(config_path, lambda nr: nr.dismiss(article))

    display_success(f"Dismissed ({result.record_id[:20]}...)")
    if result.removed_from_shortlist:
        typer.echo(f"Removed {result.removed_from_shortlist} shortlist entries")
