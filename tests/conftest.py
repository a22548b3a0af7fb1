"""Shared fixtures for litscout tests."""

from datetime import date
from typing import Dict, List, Optional, Union

import pytest

from litscout.models.article import CandidateArticle
from litscout.models.config import SourceSettings, SourceType
from litscout.observability.logging import configure_logging
from litscout.services.providers.base import SourceAdapter
from litscout.storage.memory_store import MemoryDocumentStore


class FakeAdapter(SourceAdapter):
    """Scripted source adapter.

    ``results`` is either one list returned for every query or a mapping
    from query text to list. ``error`` is raised instead when set.
    """

    def __init__(
        self,
        source: SourceType = SourceType.CROSSREF,
        results: Union[List[CandidateArticle], Dict[str, List[CandidateArticle]], None] = None,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
        requires_key: bool = False,
        settings: Optional[SourceSettings] = None,
    ):
        super().__init__(settings or SourceSettings(max_queries=4, results_per_query=10))
        self._source = source
        self._results = results or []
        self._error = error
        self._delay = delay
        self._requires_key = requires_key
        self.calls: List[tuple] = []

    @property
    def name(self) -> SourceType:
        return self._source

    @property
    def requires_api_key(self) -> bool:
        return self._requires_key

    def validate_query(self, query: str) -> str:
        return query.strip()

    async def fetch(self, query: str, from_date: date, limit: int) -> List[CandidateArticle]:
        import asyncio

        self.calls.append((query, from_date, limit))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        if isinstance(self._results, dict):
            return list(self._results.get(query, []))
        return list(self._results)


@pytest.fixture
def make_candidate():
    """Factory for candidates with sensible relevant defaults."""

    def _make(**overrides) -> CandidateArticle:
        data = {
            "title": "Generative AI and creative labour in design studios",
            "doi": "10.1000/default",
            "abstract": "How artists work with generative tools.",
            "source": "crossref",
            "year": 2024,
        }
        data.update(overrides)
        return CandidateArticle(**data)

    return _make


@pytest.fixture
def memory_store():
    return MemoryDocumentStore()


@pytest.fixture
def fake_adapter_cls():
    return FakeAdapter


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore the default logging setup after every test."""
    yield
    configure_logging(level="WARNING", json_output=False)
