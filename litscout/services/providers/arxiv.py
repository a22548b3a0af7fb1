import asyncio
import re
import urllib.parse
from datetime import date, datetime, timezone
from typing import List, Optional

import aiohttp
import feedparser
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

_VERSION_SUFFIX = re.compile(r"v\d+$")


class ArxivProvider(SourceAdapter):
    """Search for preprints using the arXiv Atom API"""

    BASE_URL = "https://export.arxiv.org/api/query"

    def __init__(
        self,
        settings: Optional[SourceSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        super().__init__(settings, session)
        # arXiv asks for 3 seconds between requests
        self.rate_limiter = rate_limiter or RateLimiter(
            requests_per_minute=20, burst_size=1, source="arxiv"
        )

    @property
    def name(self) -> SourceType:
        return SourceType.ARXIV

    def validate_query(self, query: str) -> str:
        """Validate arXiv query syntax"""
        # Blocks shell-ish characters that have no meaning in arXiv queries
        if not re.match(r'^[a-zA-Z0-9\s\-_+.,"():|]+$', query):
            raise ValueError("Invalid arXiv query syntax: contains forbidden characters")
        return query.strip()

    async def fetch(
        self, query: str, from_date: date, limit: int
    ) -> List[CandidateArticle]:
        """Fetch preprints submitted on or after ``from_date``"""
        safe_query = self.validate_query(query)
        url = f"{self.BASE_URL}?{self._build_query_params(safe_query, from_date, limit)}"

        await self.rate_limiter.acquire()

        try:
            async with self.session() as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=30)
                ) as response:
                    if response.status in (403, 429):
                        raise RateLimitError(f"arXiv rate limit exceeded ({response.status})")
                    if response.status != 200:
                        raise UpstreamUnavailableError(
                            f"arXiv API returned status {response.status}"
                        )
                    body = await response.text()
        except asyncio.TimeoutError:
            raise UpstreamUnavailableError("arXiv request timed out")
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(f"arXiv request failed: {e}") from e

        # feedparser is blocking; parse off the event loop
        loop = asyncio.get_running_loop()
        feed = await loop.run_in_executor(None, feedparser.parse, body)

        if getattr(feed, "bozo", False):
            # bozo often triggers on minor XML issues while entries are usable
            logger.warning("arxiv_feed_parse_warning", error=str(feed.bozo_exception))

        candidates = self._parse_feed(feed)

        logger.info(
            "candidates_fetched",
            query=query,
            count=len(candidates),
            source=self.name.value,
        )

        return candidates

    def _build_query_params(self, query: str, from_date: date, limit: int) -> str:
        """Build arXiv query string"""
        start_str = from_date.strftime("%Y%m%d0000")
        q_part = f"all:{query} AND submittedDate:[{start_str} TO 300001010000]"
        encoded_q = urllib.parse.quote(q_part)

        return (
            f"search_query={encoded_q}&start=0&max_results={limit}"
            "&sortBy=submittedDate&sortOrder=descending"
        )

    def _parse_feed(self, feed) -> List[CandidateArticle]:
        candidates = []
        for entry in feed.entries:
            try:
                # http://arxiv.org/abs/2301.12345v1 -> 2301.12345
                arxiv_id = _VERSION_SUFFIX.sub("", entry.id.split("/abs/")[-1])

                pub_date = None
                if getattr(entry, "published_parsed", None):
                    pub_date = datetime(*entry.published_parsed[:6], tzinfo=timezone.utc)
                year = pub_date.year if pub_date else None
                if not self.within_year_window(year):
                    continue

                authors = "; ".join(a.name for a in getattr(entry, "authors", []))

                candidates.append(
                    CandidateArticle(
                        doi=getattr(entry, "arxiv_doi", None) or f"arXiv:{arxiv_id}",
                        title=" ".join(entry.title.split()),
                        authors=authors or "Unknown Author",
                        year=year,
                        abstract=" ".join(entry.summary.split()),
                        url=entry.link,
                        published_date=pub_date,
                        source=self.name.value,
                        venue="arXiv",
                        article_type="Preprint",
                    )
                )
            except Exception as e:
                logger.warning(
                    "arxiv_parse_error",
                    error=str(e),
                    entry_id=getattr(entry, "id", "unknown"),
                )
                continue

        return candidates
