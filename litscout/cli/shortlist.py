"""Shortlist commands: show, add and remove curated articles."""

import json
from pathlib import Path
from typing import Optional

import typer

from litscout.cli.utils import (
    CONFIG_OPTION,
    display_info,
    display_success,
    display_warning,
    handle_errors,
    run_with_newsreader,
)

shortlist_app = typer.Typer(help="Manage the article shortlist")


@shortlist_app.command(name="show")
@handle_errors
def shortlist_show(
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON entries"),
    config_path: Optional[Path] = CONFIG_OPTION,
):
    """Display shortlist entries."""
    entries = run_with_newsreader(config_path, lambda nr: nr.get_shortlist())

    if as_json:
        payload = [e.model_dump(mode="json", by_alias=True) for e in entries]
        typer.echo(json.dumps(payload, indent=2))
        return

    if not entries:
        display_warning("Shortlist is empty.")
        return

    display_info(f"Shortlist contains {len(entries)} articles:")
    for e in entries:
        typer.echo(f" - {e.title} ({e.doi or 'no DOI'}) added {e.added_at:%Y-%m-%d}")


@shortlist_app.command(name="add")
@handle_errors
def shortlist_add(
    title: str = typer.Option(..., "--title", help="Article title"),
    doi: Optional[str] = typer.Option(None, "--doi", help="DOI"),
    url: Optional[str] = typer.Option(None, "--url", help="Landing page URL"),
    authors: Optional[str] = typer.Option(None, "--authors", help="Author display string"),
    year: Optional[int] = typer.Option(None, "--year", help="Publication year"),
    config_path: Optional[Path] = CONFIG_OPTION,
):
    """Add an article to the shortlist."""
    article = {"title": title, "doi": doi, "url": url, "year": year, "source": "manual"}
    if authors:
        article["authors"] = authors

    result = run_with_newsreader(config_path, lambda nr: nr.add_to_shortlist(article))

    if result.added:
        display_success(f"Added: {title}")
    elif result.skipped == "dismissed":
        display_warning(f"Skipped, previously dismissed: {title}")
    else:
        display_warning(f"Already shortlisted: {title}")


@shortlist_app.command(name="remove")
@handle_errors
def shortlist_remove(
    identifier: str = typer.Argument(..., help="DOI or exact title"),
    config_path: Optional[Path] = CONFIG_OPTION,
):
    """Remove an article from the shortlist by DOI or title."""
    result = run_with_newsreader(
        config_path, lambda nr: nr.remove_from_shortlist(identifier)
    )

    if result.removed:
        display_success(f"Removed: {identifier}")
    else:
        display_warning(f"Not in shortlist: {identifier}")
