"""Tests for reference lifecycle hooks and the identity feed."""

import pytest

from litscout.services.reference_cascade import ReferenceCascade
from litscout.services.reference_feed import StaticReferenceFeed, StoreReferenceFeed
from litscout.services.shortlist_service import ShortlistService
from litscout.storage.base import REFERENCES_COLLECTION


@pytest.fixture
def shortlist(memory_store):
    return ShortlistService(memory_store)


@pytest.fixture
def cascade(shortlist):
    return ReferenceCascade(shortlist)


@pytest.mark.asyncio
async def test_created_purges_matching_entry(cascade, shortlist, make_candidate):
    await shortlist.add(make_candidate(doi="10.1/a", title="First creative title"))
    await shortlist.add(make_candidate(doi="10.1/b", title="Second creative title"))

    result = await cascade.on_reference_created({"doi": "10.1/A", "title": "Renamed"})

    assert result.event == "created"
    assert result.removed == 1
    assert [e.doi for e in await shortlist.list_entries()] == ["10.1/b"]


@pytest.mark.asyncio
async def test_updated_purges_old_and_new_titles(cascade, shortlist, make_candidate):
    await shortlist.add(make_candidate(doi=None, title="Old Title of a creative work"))
    await shortlist.add(make_candidate(doi=None, title="New Title of a creative work"))
    await shortlist.add(make_candidate(doi=None, title="Unrelated creative work"))

    result = await cascade.on_reference_updated(
        {"title": "Old Title of a creative work"},
        {"title": "New Title of a creative work"},
    )

    assert result.event == "updated"
    assert result.removed == 2
    assert [e.title for e in await shortlist.list_entries()] == ["Unrelated creative work"]


@pytest.mark.asyncio
async def test_updated_tolerates_missing_before(cascade, shortlist, make_candidate):
    await shortlist.add(make_candidate(doi="10.1/a"))

    result = await cascade.on_reference_updated(None, {"doi": "10.1/a"})

    assert result.removed == 1


@pytest.mark.asyncio
async def test_created_uses_doi_from_resolver_url(cascade, shortlist, make_candidate):
    await shortlist.add(make_candidate(doi="10.1/a", title="Creative labour and AI"))

    result = await cascade.on_reference_created(
        {"title": "Creative labour and AI (preprint)", "url": "https://doi.org/10.1/A"}
    )

    assert result.removed == 1
    assert await shortlist.list_entries() == []


@pytest.mark.asyncio
async def test_updated_uses_doi_from_resolver_url(cascade, shortlist, make_candidate):
    await shortlist.add(make_candidate(doi="10.1/old", title="Old creative work"))
    await shortlist.add(make_candidate(doi="10.1/new", title="New creative work"))

    result = await cascade.on_reference_updated(
        {"title": "Edited entry", "url": "https://doi.org/10.1/old"},
        {"title": "Edited entry", "url": "https://dx.doi.org/10.1/new"},
    )

    assert result.removed == 2
    assert await shortlist.list_entries() == []

@pytest.mark.asyncio
async def test_reference_without_keys_is_noop(cascade, shortlist, make_candidate):
    await shortlist.add(make_candidate(doi=None, title="Creative writing with LLMs"))

    result = await cascade.on_reference_created({"url": "https://example.org"})

    assert result.removed == 0
    assert len(await shortlist.list_entries()) == 1


@pytest.mark.asyncio
async def test_store_reference_feed(memory_store):
    await memory_store.replace(
        REFERENCES_COLLECTION,
        "ref1",
        {"title": "Known work", "doi": "10.1/k", "url": None, "notes": "ignored"},
        expected_etag=None,
    )

    identities = await StoreReferenceFeed(memory_store).list_identities()

    assert len(identities) == 1
    assert identities[0].doi == "10.1/k"


@pytest.mark.asyncio
async def test_static_reference_feed():
    feed = StaticReferenceFeed([{"doi": "10.1/a"}, {"title": "Known"}])

    identities = await feed.list_identities()

    assert [i.doi for i in identities] == ["10.1/a", None]
