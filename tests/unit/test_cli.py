"""Tests for CLI commands."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from litscout.cli import app
from litscout.models.article import CandidateArticle
from litscout.models.config import SourceType
from litscout.models.discovery import DiscoveryResult, FailureReason, SourceFailure

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Config with a JSON store under tmp_path and every source disabled."""
    content = {
        "queries": [{"query": "generative AI creative work", "category": "AI"}],
        "sources": {
            "crossref": {"enabled": False},
            "semantic_scholar": {"enabled": False},
            "arxiv": {"enabled": False},
        },
        "storage": {"backend": "json", "path": str(tmp_path / "data")},
        "logging": {"level": "WARNING", "json_output": True},
    }
    path = tmp_path / "newsreader.yaml"
    path.write_text(yaml.dump(content))
    return str(path)


@pytest.fixture
def discovery_result():
    return DiscoveryResult(
        candidates=[
            CandidateArticle(
                title="Generative AI and creative labour",
                doi="10.1/new",
                source="crossref",
                published_date=datetime(2024, 5, 2, tzinfo=timezone.utc),
                is_new=True,
            ),
            CandidateArticle(
                title="Music composition with neural networks",
                doi=None,
                source="semantic_scholar",
                year=2023,
            ),
        ],
        diagnostics=[
            SourceFailure(
                source=SourceType.ARXIV,
                query="generative AI creative work",
                reason=FailureReason.TIMEOUT,
                error="Timed out after 30.0s",
            )
        ],
    )


def test_discover_prints_candidates(config_file, discovery_result):
    with patch(
        "litscout.services.discovery_service.DiscoveryService.list_candidates",
        new=AsyncMock(return_value=discovery_result),
    ) as mock_list:
        result = runner.invoke(app, ["discover", "--new", "--config", config_file])

    assert result.exit_code == 0
    mock_list.assert_awaited_once_with(True)
    assert "2 candidates:" in result.stdout
    assert "[2024-05-02] Generative AI and creative labour (crossref) [NEW]" in result.stdout
    assert "[2023] Music composition with neural networks (semantic_scholar)" in result.stdout
    assert "Source arxiv 'generative AI creative work' failed: timeout" in result.stdout


def test_discover_json(config_file, discovery_result):
    with patch(
        "litscout.services.discovery_service.DiscoveryService.list_candidates",
        new=AsyncMock(return_value=discovery_result),
    ):
        result = runner.invoke(app, ["discover", "--json", "--config", config_file])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["candidates"][0]["doiKey"] == "10.1/new"
    assert payload["candidates"][0]["isNew"] is True
    assert payload["diagnostics"][0]["reason"] == "timeout"


def test_discover_with_no_sources(config_file):
    result = runner.invoke(app, ["discover", "--config", config_file])

    assert result.exit_code == 0
    assert "No new candidates found." in result.stdout


def test_discover_config_error(tmp_path):
    result = runner.invoke(app, ["discover", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Configuration Error" in result.stdout


def test_shortlist_lifecycle(config_file):
    result = runner.invoke(
        app,
        [
            "shortlist", "add",
            "--title", "Designers and generative tools",
            "--doi", "10.1/abc",
            "--year", "2024",
            "--config", config_file,
        ],
    )
    assert result.exit_code == 0
    assert "Added: Designers and generative tools" in result.stdout

    result = runner.invoke(
        app,
        ["shortlist", "add", "--title", "Designers and generative tools", "--config", config_file],
    )
    assert "Already shortlisted" in result.stdout

    result = runner.invoke(app, ["shortlist", "show", "--config", config_file])
    assert result.exit_code == 0
    assert "Shortlist contains 1 articles:" in result.stdout
    assert "Designers and generative tools (10.1/abc)" in result.stdout

    result = runner.invoke(app, ["shortlist", "show", "--json", "--config", config_file])
    entries = json.loads(result.stdout)
    assert entries[0]["source"] == "manual"
    assert entries[0]["year"] == 2024

    result = runner.invoke(app, ["shortlist", "remove", "10.1/ABC", "--config", config_file])
    assert result.exit_code == 0
    assert "Removed: 10.1/ABC" in result.stdout

    result = runner.invoke(app, ["shortlist", "remove", "10.1/abc", "--config", config_file])
    assert "Not in shortlist" in result.stdout

    result = runner.invoke(app, ["shortlist", "show", "--config", config_file])
    assert "Shortlist is empty." in result.stdout


def test_dismiss_purges_shortlist(config_file):
    runner.invoke(
        app,
        ["shortlist", "add", "--title", "Creative AI in practice", "--doi", "10.1/x", "--config", config_file],
    )

    result = runner.invoke(app, ["dismiss", "--doi", "10.1/X", "--config", config_file])
    assert result.exit_code == 0
    assert "Dismissed (dismissed_" in result.stdout
    assert "Removed 1 shortlist entries" in result.stdout

    result = runner.invoke(
        app,
        ["shortlist", "add", "--title", "Creative AI in practice", "--doi", "10.1/x", "--config", config_file],
    )
    assert "Skipped, previously dismissed" in result.stdout


def test_dismiss_requires_identity(config_file):
    result = runner.invoke(app, ["dismiss", "--url", "https://example.org", "--config", config_file])

    assert result.exit_code == 1
    assert "Provide --doi or --title" in result.stdout


def test_shortlist_remove_blank_identifier(config_file):
    result = runner.invoke(app, ["shortlist", "remove", "   ", "--config", config_file])

    assert result.exit_code == 1
    assert "Error: Identifier required" in result.stdout


def test_validate_success(config_file):
    result = runner.invoke(app, ["validate", config_file])

    assert result.exit_code == 0
    assert "Configuration is valid!" in result.stdout
    assert "Queries: 1" in result.stdout
    assert "Enabled sources: none" in result.stdout
    assert "Storage: json" in result.stdout


def test_validate_failure():
    with patch("litscout.cli.validate.ConfigManager") as mock_cm:
        mock_cm.return_value.load_config.side_effect = Exception("Bad config")
        result = runner.invoke(app, ["validate", "config.yaml"])

    assert result.exit_code == 1
    assert "Validation failed: Bad config" in result.stdout


def test_serve_invokes_run_server(config_file):
    with patch("litscout.api.server.run_server") as mock_run:
        result = runner.invoke(app, ["serve", "--port", "9001", "--config", config_file])

    assert result.exit_code == 0
    mock_run.assert_called_once_with(host="127.0.0.1", port=9001, config_path=config_file)


def test_unexpected_error_is_reported(config_file):
    with patch(
        "litscout.cli.shortlist.run_with_newsreader",
        MagicMock(side_effect=RuntimeError("disk on fire")),
    ):
        result = runner.invoke(app, ["shortlist", "show", "--config", config_file])

    assert result.exit_code == 1
    assert "Error: disk on fire" in result.stdout
