"""Tests for the dismissal service and its shortlist cascade."""

import pytest

from litscout.services.dismissal_service import DismissalService
from litscout.services.shortlist_service import ShortlistService
from litscout.storage.base import DISMISSED_COLLECTION
from litscout.utils.exceptions import ValidationError
from litscout.utils.keys import ArticleKeys, dismissal_record_id


@pytest.fixture
def shortlist(memory_store):
    return ShortlistService(memory_store)


@pytest.fixture
def dismissals(memory_store, shortlist):
    return DismissalService(memory_store, shortlist)


@pytest.mark.asyncio
async def test_dismiss_twice_creates_one_record(dismissals, make_candidate):
    article = make_candidate(doi="10.1/A")

    first, _ = await dismissals.dismiss(article)
    second, _ = await dismissals.dismiss(make_candidate(doi=" 10.1/a "))

    records = await dismissals.list_records()
    assert len(records) == 1
    assert first.id == second.id == dismissal_record_id(ArticleKeys(doi_key="10.1/a"))


@pytest.mark.asyncio
async def test_dismiss_purges_shortlist_before_returning(
    dismissals, shortlist, make_candidate
):
    await shortlist.add(make_candidate(doi="10.1/a", title="First creative title"))
    await shortlist.add(make_candidate(doi=None, title="Second creative title"))
    await shortlist.add(make_candidate(doi="10.1/c", title="Third creative title"))

    _, removed = await dismissals.dismiss(
        {"doi": "10.1/a", "title": "Second Creative Title"}
    )

    assert removed == 2
    remaining = await shortlist.list_entries(exclude_dismissed=False)
    assert [e.doi for e in remaining] == ["10.1/c"]


@pytest.mark.asyncio
async def test_dismiss_requires_doi_or_title(dismissals, memory_store):
    with pytest.raises(ValidationError):
        await dismissals.dismiss({"url": "https://example.org", "title": "  "})

    assert await memory_store.query(DISMISSED_COLLECTION) == []


@pytest.mark.asyncio
async def test_title_only_record(dismissals):
    record, _ = await dismissals.dismiss({"title": "Creative Writing With LLMs"})

    assert record.doi_key == ""
    assert record.title_key == "creative writing with llms"
    assert record.id == dismissal_record_id(
        ArticleKeys(title_key="creative writing with llms")
    )


@pytest.mark.asyncio
async def test_record_fields_persisted(dismissals, memory_store):
    record, _ = await dismissals.dismiss(
        {
            "doi": "10.1/x",
            "title": "Creative Writing With LLMs",
            "url": "https://doi.org/10.1/x",
            "source": "crossref",
            "authors": "Doe, Jane",
            "year": 2024,
        }
    )

    doc = await memory_store.get(DISMISSED_COLLECTION, record.id)
    assert doc.data["type"] == "dismissed"
    assert doc.data["doiKey"] == "10.1/x"
    assert doc.data["authors"] == "Doe, Jane"
    assert doc.data["year"] == 2024
    assert "dateDismissed" in doc.data


@pytest.mark.asyncio
async def test_get_keys_and_is_dismissed(dismissals):
    await dismissals.dismiss({"doi": "10.1/a"})
    await dismissals.dismiss({"title": "Generative AI and Creative Labor in Design Studios"})

    keys = await dismissals.get_keys()

    assert keys.doi_keys == {"10.1/a"}
    assert "generative ai and creative labor in design studios" in keys.title_keys
    assert keys.token_sets == [
        frozenset({"generative", "creative", "labor", "design", "studios"})
    ]
    assert await dismissals.is_dismissed(ArticleKeys(doi_key="10.1/a"))
    assert not await dismissals.is_dismissed(ArticleKeys(doi_key="10.1/b"))
    assert not await dismissals.is_dismissed(ArticleKeys())
