"""Discovery service: concurrent source fan-out, admission and ranking."""

import asyncio
import time
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple, Type

import aiohttp
import structlog

from litscout.models.article import CandidateArticle, utc_now
from litscout.models.config import NewsreaderConfig, SearchQuery, SourceSettings, SourceType
from litscout.models.discovery import (
    DiscoveryResult,
    FailureReason,
    SourceFailure,
    SourceResult,
)
from litscout.observability.metrics import (
    CANDIDATES_FETCHED,
    CANDIDATES_REJECTED,
    DISCOVERY_DURATION,
    SOURCE_FAILURES,
)
from litscout.services.dedup_service import AdmissionContext, DeduplicationService
from litscout.services.dismissal_service import DismissalService
from litscout.services.providers.arxiv import ArxivProvider
from litscout.services.providers.base import (
    RateLimitError,
    SourceAdapter,
    UpstreamUnavailableError,
)
from litscout.services.providers.crossref import CrossrefProvider
from litscout.services.providers.semantic_scholar import SemanticScholarProvider
from litscout.services.reference_feed import ReferenceFeed
from litscout.services.relevance_filter import RelevanceFilter
from litscout.services.shortlist_service import ShortlistService
from litscout.utils.exceptions import NotConfiguredError

logger = structlog.get_logger()

ADAPTER_CLASSES: Dict[SourceType, Type[SourceAdapter]] = {
    SourceType.CROSSREF: CrossrefProvider,
    SourceType.SEMANTIC_SCHOLAR: SemanticScholarProvider,
    SourceType.ARXIV: ArxivProvider,
}

# Undated candidates sort after everything else
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

# Abstracts are shortened only in the returned list, never before admission
ABSTRACT_MAX_LENGTH = 1000


def build_adapters(
    sources: Dict[SourceType, SourceSettings],
    session: Optional[aiohttp.ClientSession] = None,
) -> Dict[SourceType, SourceAdapter]:
    """Instantiate an adapter for every enabled source, in enumeration order.

    Args:
        sources: Per-source settings from configuration.
        session: Shared HTTP session, or None for per-call sessions.

    Returns:
        Ordered mapping of source type to adapter.
    """
    adapters: Dict[SourceType, SourceAdapter] = {}
    for source_type in SourceType:
        settings = sources.get(source_type)
        if settings is None or not settings.enabled:
            logger.debug("source_disabled", source=source_type.value)
            continue
        adapters[source_type] = ADAPTER_CLASSES[source_type](
            settings=settings, session=session
        )
    return adapters


def _sort_key(candidate: CandidateArticle) -> Tuple[datetime, bool]:
    return (candidate.best_date or _OLDEST, candidate.has_exact_date)


def rank_candidates(
    candidates: List[CandidateArticle],
    now: datetime,
    new_window_days: int,
    only_new: bool,
    max_results: int,
) -> List[CandidateArticle]:
    """Flag, sort, filter and cap admitted candidates.

    Newest first by best-known date; on equal dates an exact publication
    date ranks before a year-only one, otherwise input order is kept.

    Args:
        candidates: Admitted candidates in merge order.
        now: Assembly time.
        new_window_days: Age limit for ``is_new``.
        only_new: Keep only candidates flagged as new.
        max_results: Output size cap.

    Returns:
        Ranked candidates with abstracts shortened for output.
    """
    cutoff = now - timedelta(days=new_window_days)
    for candidate in candidates:
        best = candidate.best_date
        candidate.is_new = best is not None and best >= cutoff

    ranked = sorted(candidates, key=_sort_key, reverse=True)
    if only_new:
        ranked = [c for c in ranked if c.is_new]
    return [
        c.model_copy(update={"abstract": c.abstract[:ABSTRACT_MAX_LENGTH]})
        for c in ranked[:max_results]
    ]


class DiscoveryService:
    """Fans discovery queries out to every enabled source and assembles
    the ranked, deduplicated candidate list.

    Source calls run concurrently with bounded parallelism. A failing,
    slow or unconfigured source contributes nothing and is reported in
    the result diagnostics; only a missing or failing identity feed or
    store fails the whole request.
    """

    def __init__(
        self,
        config: NewsreaderConfig,
        shortlist: ShortlistService,
        dismissals: DismissalService,
        reference_feed: Optional[ReferenceFeed] = None,
        adapters: Optional[Dict[SourceType, SourceAdapter]] = None,
        relevance_filter: Optional[RelevanceFilter] = None,
    ):
        """Initialize discovery service.

        Args:
            config: Newsreader configuration.
            shortlist: Shortlist whose identities are excluded.
            dismissals: Dismissal store whose identities are excluded.
            reference_feed: Catalogued reference identities.
            adapters: Source adapters; built from config when omitted.
            relevance_filter: Relevance filter for the last admission gate.
        """
        self.config = config
        self.shortlist = shortlist
        self.dismissals = dismissals
        self.reference_feed = reference_feed
        self.adapters = adapters if adapters is not None else build_adapters(config.sources)
        self.relevance_filter = relevance_filter or RelevanceFilter(config.relevance)

    async def list_candidates(self, only_new: bool = False) -> DiscoveryResult:
        """Discover, admit and rank candidates.

        Args:
            only_new: Use the narrower lookback and keep only new candidates.

        Returns:
            DiscoveryResult with ranked candidates and per-source diagnostics.

        Raises:
            NotConfiguredError: If no reference identity feed is wired in.
            PersistenceError: If the feed or a store cannot be read.
        """
        mode = "new" if only_new else "all"
        with DISCOVERY_DURATION.labels(mode=mode).time():
            return await self._list_candidates(only_new)

    async def _list_candidates(self, only_new: bool) -> DiscoveryResult:
        settings = self.config.discovery
        now = utc_now()
        lookback = settings.new_lookback_days if only_new else settings.lookback_days
        from_date = (now - timedelta(days=lookback)).date()

        context = await self._build_context()

        logger.info(
            "discovery_started",
            only_new=only_new,
            from_date=from_date.isoformat(),
            sources=[s.value for s in self.adapters],
        )

        results, diagnostics = await self._fetch_all(from_date)

        merged: List[CandidateArticle] = []
        for result in results:
            for candidate in result.candidates:
                merged.append(candidate.model_copy(update={"category": result.category}))

        dedup = DeduplicationService(self.relevance_filter)
        admitted, rejected = dedup.admit_candidates(merged, context)
        for _, reason in rejected:
            CANDIDATES_REJECTED.labels(reason=reason.value).inc()

        ranked = rank_candidates(
            admitted,
            now=now,
            new_window_days=settings.new_window_days,
            only_new=only_new,
            max_results=settings.max_results,
        )

        logger.info(
            "discovery_complete",
            fetched=len(merged),
            admitted=len(admitted),
            returned=len(ranked),
            failures=len(diagnostics),
        )

        return DiscoveryResult(
            candidates=ranked,
            diagnostics=diagnostics,
            only_new=only_new,
            total_fetched=len(merged),
            stats=dedup.get_stats(),
            assembled_at=now,
        )

    async def _build_context(self) -> AdmissionContext:
        if self.reference_feed is None:
            raise NotConfiguredError("Reference identity feed is not configured")

        references = await self.reference_feed.list_identities()
        shortlist = await self.shortlist.list_entries(exclude_dismissed=False)
        dismissed = await self.dismissals.get_keys()

        logger.debug(
            "admission_context_loaded",
            references=len(references),
            shortlist=len(shortlist),
            dismissed_titles=len(dismissed.token_sets),
        )
        return AdmissionContext.build(references, shortlist, dismissed)

    async def _fetch_all(self, from_date: date) -> Tuple[List[SourceResult], List[SourceFailure]]:
        semaphore = asyncio.Semaphore(self.config.discovery.max_concurrency)
        diagnostics: List[SourceFailure] = []
        tasks = []

        for source_type, adapter in self.adapters.items():
            if not adapter.is_configured:
                logger.warning("source_not_configured", source=source_type.value)
                SOURCE_FAILURES.labels(
                    source=source_type.value, reason=FailureReason.NOT_CONFIGURED.value
                ).inc()
                diagnostics.append(
                    SourceFailure(
                        source=source_type,
                        reason=FailureReason.NOT_CONFIGURED,
                        error="Missing API key",
                    )
                )
                continue

            queries = self.config.queries[: adapter.settings.max_queries]
            for query in queries:
                tasks.append(
                    self._run_query(
                        adapter,
                        query,
                        from_date,
                        adapter.settings.results_per_query,
                        semaphore,
                    )
                )

        # gather keeps task order, i.e. source order then query order
        results: List[SourceResult] = list(await asyncio.gather(*tasks))

        for result in results:
            if result.failure is not None:
                diagnostics.append(result.failure)

        return results, diagnostics

    async def _run_query(
        self,
        adapter: SourceAdapter,
        query: SearchQuery,
        from_date: date,
        limit: int,
        semaphore: asyncio.Semaphore,
    ) -> SourceResult:
        source = adapter.name
        timeout = self.config.discovery.source_timeout_seconds

        async with semaphore:
            start = time.monotonic()
            reason: Optional[FailureReason] = None
            error: Optional[str] = None
            candidates: List[CandidateArticle] = []

            try:
                candidates = await asyncio.wait_for(
                    adapter.fetch(query.query, from_date, limit), timeout=timeout
                )
            except asyncio.TimeoutError:
                reason, error = FailureReason.TIMEOUT, f"Timed out after {timeout}s"
            except RateLimitError as e:
                reason, error = FailureReason.RATE_LIMITED, str(e)
            except UpstreamUnavailableError as e:
                reason, error = FailureReason.UPSTREAM_ERROR, str(e)
            except Exception as e:
                reason, error = FailureReason.UNEXPECTED_ERROR, str(e)

            elapsed_ms = int((time.monotonic() - start) * 1000)

        if reason is not None:
            logger.warning(
                "source_query_failed",
                source=source.value,
                query=query.query[:50],
                reason=reason.value,
                error=error,
            )
            SOURCE_FAILURES.labels(source=source.value, reason=reason.value).inc()
            return SourceResult(
                source=source,
                query=query.query,
                category=query.category,
                failure=SourceFailure(
                    source=source, query=query.query, reason=reason, error=error
                ),
                query_time_ms=elapsed_ms,
            )

        CANDIDATES_FETCHED.labels(source=source.value).inc(len(candidates))
        return SourceResult(
            source=source,
            query=query.query,
            category=query.category,
            candidates=candidates,
            query_time_ms=elapsed_ms,
        )
