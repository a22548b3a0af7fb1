"""Discover command: list ranked candidate articles."""

import json
from pathlib import Path
from typing import Optional

import typer

from litscout.cli.utils import (
    CONFIG_OPTION,
    display_info,
    display_warning,
    handle_errors,
    run_with_newsreader,
)
from litscout.models.article import CandidateArticle
from litscout.models.discovery import DiscoveryResult


def _format_date(candidate: CandidateArticle) -> str:
    if candidate.published_date is not None:
        return candidate.published_date.date().isoformat()
    return str(candidate.year) if candidate.year else "----"


def display_result(result: DiscoveryResult) -> None:
    """Print candidates and diagnostics in human-readable form."""
    if not result.candidates:
        display_warning("No new candidates found.")
    else:
        display_info(f"{len(result.candidates)} candidates:")
        for c in result.candidates:
            marker = " [NEW]" if c.is_new else ""
            typer.echo(f" - [{_format_date(c)}] {c.title} ({c.source}){marker}")
            if c.doi:
                typer.echo(f"     doi: {c.doi}")

    for failure in result.diagnostics:
        query = f" '{failure.query}'" if failure.query else ""
        display_warning(
            f"Source {failure.source.value}{query} failed: "
            f"{failure.reason.value} {failure.error or ''}".rstrip()
        )


@handle_errors
def discover_command(
    new: bool = typer.Option(False, "--new", help="Only recently published articles"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON result"),
    config_path: Optional[Path] = CONFIG_OPTION,
):
    """Discover, filter and rank candidate articles."""
    result = run_with_newsreader(
        config_path, lambda nr: nr.list_candidates(only_new=new)
    )

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
    else:
        display_result(result)
