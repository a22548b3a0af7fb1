"""Tests for the CrossRef source adapter."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from litscout.models.config import SourceSettings, SourceType
from litscout.services.providers.crossref import CrossrefProvider, strip_markup
from litscout.services.providers.base import RateLimitError, UpstreamUnavailableError


def crossref_item(**overrides):
    item = {
        "DOI": "10.1145/3544548.3581",
        "title": ["Co-creating with generative AI in design studios"],
        "author": [
            {"family": "Doe", "given": "Jane"},
            {"family": "Roe"},
            {"name": "Studio Collective"},
        ],
        "published": {"date-parts": [[2024, 3, 5]]},
        "abstract": "<jats:p>Designers   and <jats:italic>AI</jats:italic> tools.</jats:p>",
        "URL": "https://doi.org/10.1145/3544548.3581",
        "container-title": ["CHI Conference on Human Factors"],
        "type": "proceedings-article",
    }
    item.update(overrides)
    return item


@pytest.fixture
def provider():
    return CrossrefProvider(SourceSettings(min_year=2020, mailto="lab@example.org"))


def mock_response(mock_get, status=200, payload=None):
    resp = AsyncMock()
    resp.status = status
    resp.json.return_value = payload
    mock_get.return_value.__aenter__.return_value = resp
    return resp


@pytest.mark.asyncio
async def test_fetch_normalizes_items(provider):
    payload = {"message": {"items": [crossref_item()]}}

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_response(mock_get, payload=payload)
        candidates = await provider.fetch("generative AI design", date(2024, 1, 1), 10)

    assert len(candidates) == 1
    c = candidates[0]
    assert c.source == SourceType.CROSSREF.value
    assert c.doi == "10.1145/3544548.3581"
    assert c.doi_key == "10.1145/3544548.3581"
    assert c.title == "Co-creating with generative AI in design studios"
    assert c.authors == "Doe, Jane; Roe; Studio Collective"
    assert c.abstract == "Designers and AI tools."
    assert c.published_date == datetime(2024, 3, 5, tzinfo=timezone.utc)
    assert c.year == 2024
    assert c.venue == "CHI Conference on Human Factors"
    assert c.article_type == "Conference Paper"


@pytest.mark.asyncio
async def test_fetch_sends_filters(provider):
    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_response(mock_get, payload={"message": {"items": []}})
        await provider.fetch("creative labour", date(2025, 6, 1), 10)

    params = mock_get.call_args.kwargs["params"]
    assert params["rows"] == 10
    assert params["sort"] == "published"
    assert params["order"] == "desc"
    assert "from-pub-date:2025-06-01" in params["filter"]
    assert "type:journal-article" in params["filter"]
    assert params["mailto"] == "lab@example.org"


@pytest.mark.asyncio
async def test_year_window_and_missing_dates(provider):
    items = [
        crossref_item(DOI="10.1/old", published={"date-parts": [[2019, 5]]}),
        crossref_item(DOI="10.1/none", published=None),
        crossref_item(
            DOI="10.1/created",
            published=None,
            created={"date-parts": [[2023, 2, 1]]},
        ),
        crossref_item(DOI="10.1/future", published={"date-parts": [[2999]]}),
    ]

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_response(mock_get, payload={"message": {"items": items}})
        candidates = await provider.fetch("q", date(2019, 1, 1), 10)

    assert [c.doi for c in candidates] == ["10.1/created"]
    # "created" counts for the year only
    assert candidates[0].year == 2023
    assert candidates[0].published_date is None


@pytest.mark.asyncio
async def test_partial_date_parts_default_to_first_of_month(provider):
    item = crossref_item(published={"date-parts": [[2024, 7]]})

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_response(mock_get, payload={"message": {"items": [item]}})
        candidates = await provider.fetch("q", date(2024, 1, 1), 10)

    assert candidates[0].published_date == datetime(2024, 7, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_missing_title_and_type_defaults(provider):
    item = crossref_item(title=[], type="posted-content", author=[])

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_response(mock_get, payload={"message": {"items": [item]}})
        candidates = await provider.fetch("q", date(2024, 1, 1), 10)

    assert candidates[0].title is None
    assert candidates[0].article_type == "Article"
    assert candidates[0].authors == "Unknown Author"


@pytest.mark.asyncio
async def test_long_abstract_is_kept_whole(provider):
    abstract = "Generative AI and creative labour. " + "x " * 600 + "A military weapon study."
    item = crossref_item(abstract=f"<jats:p>{abstract}</jats:p>")

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_response(mock_get, payload={"message": {"items": [item]}})
        candidates = await provider.fetch("q", date(2024, 1, 1), 10)

    assert candidates[0].abstract.endswith("A military weapon study.")


@pytest.mark.asyncio
async def test_rate_limit(provider):
    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_response(mock_get, status=429)
        with pytest.raises(RateLimitError):
            await provider.fetch("q", date(2024, 1, 1), 10)


@pytest.mark.asyncio
async def test_server_error(provider):
    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_response(mock_get, status=503)
        with pytest.raises(UpstreamUnavailableError):
            await provider.fetch("q", date(2024, 1, 1), 10)


@pytest.mark.asyncio
async def test_client_error_wrapped(provider):
    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_get.side_effect = aiohttp.ClientConnectionError("refused")
        with pytest.raises(UpstreamUnavailableError):
            await provider.fetch("q", date(2024, 1, 1), 10)


def test_validate_query(provider):
    assert provider.validate_query("  creative labour ") == "creative labour"
    with pytest.raises(ValueError):
        provider.validate_query("   ")
    with pytest.raises(ValueError):
        provider.validate_query("x" * 501)


def test_strip_markup():
    assert strip_markup("<p>A  <b>bold</b>\nclaim</p>") == "A bold claim"
    assert strip_markup(None) == ""
