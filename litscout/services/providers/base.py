from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, List, Optional

import aiohttp

from litscout.models.article import CandidateArticle
from litscout.models.config import SourceSettings, SourceType
from litscout.utils.exceptions import UpstreamUnavailableError, RateLimitError

__all__ = [
    "SourceAdapter",
    "UpstreamUnavailableError",
    "RateLimitError",
]

MIN_VALID_YEAR = 1900


class SourceAdapter(ABC):
    """Abstract base class for bibliographic source adapters

    Each adapter turns one upstream provider's response shape into
    CandidateArticle records tagged with the adapter's source type. The
    rest of the pipeline never looks at provider-specific fields.
    """

    def __init__(
        self,
        settings: Optional[SourceSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.settings = settings or SourceSettings()
        self._session = session

    @abstractmethod
    async def fetch(
        self, query: str, from_date: date, limit: int
    ) -> List[CandidateArticle]:
        """Fetch candidates for a query published on or after a date

        Args:
            query: Free-text search query
            from_date: Lookback boundary (inclusive)
            limit: Maximum number of records to request

        Returns:
            Candidates in upstream order; records that fail to parse are dropped

        Raises:
            UpstreamUnavailableError: If the request or response fails
            RateLimitError: If the provider throttles the request
        """
        pass

    @abstractmethod
    def validate_query(self, query: str) -> str:
        """Validate query against provider-specific syntax

        Args:
            query: Configured search query

        Returns:
            Validated and sanitized query string

        Raises:
            ValueError: If query contains invalid syntax
        """
        pass

    @property
    @abstractmethod
    def name(self) -> SourceType:
        """Source tag stamped on every candidate"""
        pass

    @property
    def requires_api_key(self) -> bool:
        """Whether this adapter refuses to run without an API key"""
        return False

    @property
    def is_configured(self) -> bool:
        """Whether all required credentials are present"""
        return not self.requires_api_key or bool(self.settings.api_key)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Yield the injected HTTP session, or a short-lived one."""
        if self._session is not None:
            yield self._session
        else:
            async with aiohttp.ClientSession() as session:
                yield session

    def within_year_window(self, year: Optional[int]) -> bool:
        """Check a record's year against the source's configured window.

        Records without a year, from before ``min_year`` or from after next
        year are dropped at the adapter boundary.
        """
        if year is None:
            return False
        max_year = datetime.now().year + 1
        if year < MIN_VALID_YEAR or year > max_year:
            return False
        if self.settings.min_year and year < self.settings.min_year:
            return False
        return True
