import asyncio
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from litscout.models.article import CandidateArticle
from litscout.models.config import SourceSettings, SourceType
from litscout.services.providers.base import (
    RateLimitError,
    SourceAdapter,
    UpstreamUnavailableError,
)
from litscout.utils.rate_limiter import RateLimiter

logger = structlog.get_logger()

_HTML_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

# Date-parts fields in preference order; "created" only counts for the year
_PUBLISHED_FIELDS = ("published", "published-print", "published-online")
_YEAR_FIELDS = _PUBLISHED_FIELDS + ("created",)

TYPE_LABELS = {
    "journal-article": "Journal Article",
    "book-chapter": "Book Section",
    "proceedings-article": "Conference Paper",
}


def strip_markup(text: Optional[str]) -> str:
    """Remove JATS/HTML tags and collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", _HTML_TAG.sub("", text)).strip()


def _date_parts(item: Dict[str, Any], fields) -> Optional[List[int]]:
    for name in fields:
        parts = (item.get(name) or {}).get("date-parts") or []
        if parts and parts[0] and parts[0][0]:
            return [p for p in parts[0] if p is not None]
    return None


class CrossrefProvider(SourceAdapter):
    """Search for articles using the CrossRef works API"""

    BASE_URL = "https://api.crossref.org/works"
    USER_AGENT = "litscout/1.0"

    def __init__(
        self,
        settings: Optional[SourceSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        super().__init__(settings, session)
        self.rate_limiter = rate_limiter or RateLimiter(
            requests_per_minute=50, burst_size=5, source="crossref"
        )

    @property
    def name(self) -> SourceType:
        return SourceType.CROSSREF

    def validate_query(self, query: str) -> str:
        """Validate CrossRef query syntax"""
        if not query or not query.strip():
            raise ValueError("Query cannot be empty")
        if len(query) > 500:
            raise ValueError("Query too long (max 500 characters)")
        return query.strip()

    async def fetch(
        self, query: str, from_date: date, limit: int
    ) -> List[CandidateArticle]:
        """Fetch journal and proceedings articles for a query"""
        safe_query = self.validate_query(query)
        params = self._build_query_params(safe_query, from_date, limit)

        await self.rate_limiter.acquire()

        try:
            async with self.session() as session:
                async with session.get(
                    self.BASE_URL,
                    params=params,
                    headers={"User-Agent": self._user_agent()},
                    timeout=aiohttp.ClientTimeout(total=30),
                ) as response:

                    if response.status == 429:
                        raise RateLimitError("CrossRef rate limit exceeded")

                    if response.status != 200:
                        logger.warning(
                            "crossref_api_error", status=response.status, query=query
                        )
                        raise UpstreamUnavailableError(
                            f"CrossRef request failed: {response.status}"
                        )

                    data = await response.json()

        except asyncio.TimeoutError:
            raise UpstreamUnavailableError("CrossRef request timed out")
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(f"CrossRef request failed: {e}") from e

        candidates = self._parse_response(data)

        logger.info(
            "candidates_fetched",
            query=query,
            count=len(candidates),
            source=self.name.value,
        )

        return candidates

    def _user_agent(self) -> str:
        if self.settings.mailto:
            return f"{self.USER_AGENT} (mailto:{self.settings.mailto})"
        return self.USER_AGENT

    def _build_query_params(self, query: str, from_date: date, limit: int) -> dict:
        """Convert query and lookback into API parameters"""
        params = {
            "query": query,
            "rows": limit,
            "sort": "published",
            "order": "desc",
            "filter": (
                "type:journal-article,type:proceedings-article,"
                f"from-pub-date:{from_date.isoformat()}"
            ),
        }
        if self.settings.mailto:
            params["mailto"] = self.settings.mailto
        return params

    def _parse_response(self, data: Any) -> List[CandidateArticle]:
        """Parse the works response into candidates"""
        items = ((data or {}).get("message") or {}).get("items") or []

        candidates = []
        for item in items:
            try:
                candidate = self._parse_item(item)
            except Exception as e:
                logger.warning("crossref_parse_error", doi=item.get("DOI"), error=str(e))
                continue
            if candidate is not None:
                candidates.append(candidate)

        return candidates

    def _parse_item(self, item: Dict[str, Any]) -> Optional[CandidateArticle]:
        year_parts = _date_parts(item, _YEAR_FIELDS)
        year = year_parts[0] if year_parts else None
        if not self.within_year_window(year):
            return None

        pub_date = None
        parts = _date_parts(item, _PUBLISHED_FIELDS)
        if parts:
            y, m, d = (parts + [1, 1])[:3]
            pub_date = datetime(y, m, d, tzinfo=timezone.utc)

        doi = item.get("DOI")
        titles = item.get("title") or []
        containers = item.get("container-title") or []

        return CandidateArticle(
            doi=doi,
            title=titles[0] if titles else None,
            authors=self._format_authors(item.get("author") or []),
            year=year,
            abstract=strip_markup(item.get("abstract")),
            url=item.get("URL") or (f"https://doi.org/{doi}" if doi else ""),
            published_date=pub_date,
            source=self.name.value,
            venue=containers[0] if containers else (item.get("publisher") or ""),
            article_type=TYPE_LABELS.get(item.get("type", ""), "Article"),
        )

    @staticmethod
    def _format_authors(authors: List[Dict[str, Any]]) -> str:
        """Format as 'Family, Given; Family; Name'"""
        names = []
        for author in authors:
            family = author.get("family")
            given = author.get("given")
            if family and given:
                names.append(f"{family}, {given}")
            elif family or author.get("name"):
                names.append(family or author["name"])
        return "; ".join(names) or "Unknown Author"
