import aiohttp
import asyncio
from typing import Any, Dict, List, Optional
from datetime import date, datetime, timezone
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


class SemanticScholarProvider(SourceAdapter):
    """Search for papers using Semantic Scholar API"""

    BASE_URL = "https://api.semanticscholar.org/graph/v1/paper/search"
    PAPER_URL = "https://www.semanticscholar.org/paper/"
    FIELDS = "title,authors,year,abstract,url,venue,publicationDate,externalIds"

    def __init__(
        self,
        settings: Optional[SourceSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        super().__init__(settings, session)
        # Unauthenticated access shares a much smaller pool
        rpm = 100 if self.settings.api_key else 20
        self.rate_limiter = rate_limiter or RateLimiter(
            requests_per_minute=rpm, burst_size=2, source="semantic_scholar"
        )

    @property
    def name(self) -> SourceType:
        return SourceType.SEMANTIC_SCHOLAR

    def validate_query(self, query: str) -> str:
        """Validate Semantic Scholar query syntax"""
        if not query or not query.strip():
            raise ValueError("Query cannot be empty")

        if len(query) > 500:
            raise ValueError("Query too long (max 500 characters)")

        if any(ord(c) < 32 for c in query if c not in "\t\n\r"):
            raise ValueError("Query contains invalid control characters")

        return query.strip()

    async def fetch(
        self, query: str, from_date: date, limit: int
    ) -> List[CandidateArticle]:
        """Search for papers matching query"""
        safe_query = self.validate_query(query)
        params = self._build_query_params(safe_query, from_date, limit)

        headers = {"User-Agent": "litscout/1.0"}
        if self.settings.api_key:
            headers["x-api-key"] = self.settings.api_key

        await self.rate_limiter.acquire()

        try:
            async with self.session() as session:
                async with session.get(
                    self.BASE_URL,
                    params=params,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=30),
                ) as response:

                    if response.status == 429:
                        raise RateLimitError("Semantic Scholar rate limit exceeded")

                    if response.status != 200:
                        text = await response.text()
                        logger.warning(
                            "semantic_scholar_api_error",
                            status=response.status,
                            body=text[:200],
                        )
                        raise UpstreamUnavailableError(
                            f"API request failed: {response.status}"
                        )

                    data = await response.json()

        except asyncio.TimeoutError:
            raise UpstreamUnavailableError("Request timed out")
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(f"Semantic Scholar request failed: {e}") from e

        candidates = self._parse_response(data)

        logger.info(
            "candidates_fetched",
            query=query,
            count=len(candidates),
            source=self.name.value,
        )

        return candidates

    def _build_query_params(self, query: str, from_date: date, limit: int) -> dict:
        """Convert query and lookback to API parameters"""
        return {
            "query": query,
            "limit": limit,
            "fields": self.FIELDS,
            "publicationDateOrYear": f"{from_date.isoformat()}:",
        }

    def _parse_response(self, data: Any) -> List[CandidateArticle]:
        """Parse API response into candidates"""
        if not data or not data.get("data"):
            return []

        candidates = []
        for item in data["data"]:
            try:
                candidate = self._parse_item(item)
            except Exception as e:
                logger.warning(
                    "semantic_scholar_parse_error",
                    paper_id=item.get("paperId"),
                    error=str(e),
                )
                continue
            if candidate is not None:
                candidates.append(candidate)

        return candidates

    def _parse_item(self, item: Dict[str, Any]) -> Optional[CandidateArticle]:
        year = item.get("year")
        if not self.within_year_window(year):
            return None

        paper_id = item.get("paperId")
        doi = (item.get("externalIds") or {}).get("DOI")

        pub_date = None
        if item.get("publicationDate"):
            try:
                pub_date = datetime.strptime(
                    item["publicationDate"], "%Y-%m-%d"
                ).replace(tzinfo=timezone.utc)
            except ValueError:
                pass

        authors = "; ".join(
            a["name"] for a in item.get("authors") or [] if a.get("name")
        )

        if item.get("url"):
            url = item["url"]
        elif doi:
            url = f"https://doi.org/{doi}"
        else:
            url = f"{self.PAPER_URL}{paper_id}"

        return CandidateArticle(
            doi=doi or paper_id,
            title=item.get("title"),
            authors=authors or "Unknown Author",
            year=year,
            abstract=item.get("abstract") or "",
            url=url,
            published_date=pub_date,
            source=self.name.value,
            venue=item.get("venue") or "Semantic Scholar",
        )
