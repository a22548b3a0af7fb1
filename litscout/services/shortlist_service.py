"""Shortlist Service.

Maintains the single shortlist aggregate document. Every mutation is a
read-modify-write cycle guarded by the document's etag and retried on
conflict, so an add racing a remove cannot silently drop either update.
"""

from typing import List, Optional, Tuple

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from litscout.models.article import (
    DISMISSED_DOC_TYPE,
    SHORTLIST_DOC_ID,
    CandidateArticle,
    DismissedRecord,
    ShortlistAggregate,
    ShortlistEntry,
)
from litscout.models.operations import AddResult
from litscout.observability.metrics import SHORTLIST_OPERATIONS
from litscout.services.dedup_service import DismissedKeys
from litscout.storage.base import (
    DISMISSED_COLLECTION,
    SHORTLIST_COLLECTION,
    DocumentStore,
)
from litscout.utils.exceptions import ValidationError, VersionConflictError
from litscout.utils.keys import ArticleKeys, decode_identifier

logger = structlog.get_logger()

CAS_MAX_ATTEMPTS = 5

cas_retry = retry(
    stop=stop_after_attempt(CAS_MAX_ATTEMPTS),
    wait=wait_random_exponential(multiplier=0.01, max=0.2),
    retry=retry_if_exception_type(VersionConflictError),
    reraise=True,
)


async def load_dismissed_records(store: DocumentStore) -> List[DismissedRecord]:
    """Scan the dismissal collection.

    Args:
        store: Document store holding the dismissal collection.

    Returns:
        All dismissed records.
    """
    docs = await store.query(DISMISSED_COLLECTION, type=DISMISSED_DOC_TYPE)
    return [DismissedRecord.model_validate(doc.data) for doc in docs]


async def load_dismissed_keys(store: DocumentStore) -> DismissedKeys:
    """Scan the dismissal collection into key sets and title token sets."""
    return DismissedKeys.from_records(await load_dismissed_records(store))


class ShortlistService:
    """Service for the curated shortlist.

    Provides:
    - Guarded add (dismissed identities skipped, duplicates ignored)
    - Removal by user-supplied identifier or by key pair (cascades)
    - Listing with dismissed identities filtered out at read time
    """

    def __init__(self, store: DocumentStore):
        """Initialize the shortlist service.

        Args:
            store: Document store holding the shortlist aggregate.
        """
        self.store = store

    async def _load(self) -> Tuple[ShortlistAggregate, Optional[str]]:
        doc = await self.store.get(SHORTLIST_COLLECTION, SHORTLIST_DOC_ID)
        if doc is None:
            return ShortlistAggregate(), None
        return ShortlistAggregate.model_validate(doc.data), doc.etag

    async def _save(self, aggregate: ShortlistAggregate, etag: Optional[str]) -> None:
        await self.store.replace(
            SHORTLIST_COLLECTION,
            SHORTLIST_DOC_ID,
            aggregate.model_dump(mode="json", by_alias=True),
            expected_etag=etag,
        )

    async def _is_dismissed(self, keys: ArticleKeys) -> bool:
        return (await load_dismissed_keys(self.store)).contains(keys)

    def _skip_dismissed(self, article: CandidateArticle) -> AddResult:
        SHORTLIST_OPERATIONS.labels(operation="add", outcome="skipped").inc()
        logger.info("shortlist_add_skipped", reason="dismissed", title=article.title[:50])
        return AddResult(added=False, skipped="dismissed")

    @cas_retry
    async def add(self, article: CandidateArticle) -> AddResult:
        """Add an article to the shortlist.

        Args:
            article: Article to add; must have a title.

        Returns:
            AddResult describing whether it was added, skipped or a duplicate.

        Raises:
            ValidationError: If the article has no title.
            PersistenceError: If the store fails or conflicts persist.
        """
        if not article.title or not article.title.strip():
            raise ValidationError("Article title required")

        keys = article.keys

        aggregate, etag = await self._load()

        if await self._is_dismissed(keys):
            return self._skip_dismissed(article)

        if aggregate.contains(keys):
            SHORTLIST_OPERATIONS.labels(operation="add", outcome="duplicate").inc()
            logger.debug("shortlist_add_duplicate", title=article.title[:50])
            return AddResult(added=False, duplicate=True)

        aggregate.entries.append(ShortlistEntry.from_article(article))
        await self._save(aggregate, etag)

        # A dismiss that ran between the check and the save purged nothing
        if await self._is_dismissed(keys):
            await self.remove_by_keys(keys.doi_key, keys.title_key)
            return self._skip_dismissed(article)

        SHORTLIST_OPERATIONS.labels(operation="add", outcome="added").inc()
        logger.info(
            "shortlist_entry_added",
            title=article.title[:50],
            doi=article.doi,
            entries=aggregate.get_entry_count(),
        )
        return AddResult(added=True)

    @cas_retry
    async def remove(self, identifier: str) -> bool:
        """Remove entries matching a DOI or title identifier.

        Args:
            identifier: DOI or title, possibly percent-encoded.

        Returns:
            True if at least one entry was removed.

        Raises:
            ValidationError: If the identifier is empty.
        """
        key = decode_identifier(identifier)
        if not key:
            raise ValidationError("Identifier required")

        aggregate, etag = await self._load()
        removed = aggregate.remove_matching(key, key)

        if removed:
            await self._save(aggregate, etag)
            logger.info("shortlist_entry_removed", identifier=key[:50], removed=removed)

        SHORTLIST_OPERATIONS.labels(
            operation="remove", outcome="removed" if removed else "noop"
        ).inc()
        return removed > 0

    @cas_retry
    async def remove_by_keys(self, doi_key: str, title_key: str) -> int:
        """Remove every entry whose DOI key or title key matches.

        Used by the dismissal and reference cascades.

        Args:
            doi_key: Normalized DOI key (empty never matches).
            title_key: Normalized title key (empty never matches).

        Returns:
            Number of entries removed.
        """
        if not doi_key and not title_key:
            return 0

        aggregate, etag = await self._load()
        removed = aggregate.remove_matching(doi_key, title_key)

        if removed:
            await self._save(aggregate, etag)
            SHORTLIST_OPERATIONS.labels(operation="cascade", outcome="removed").inc()
            logger.info(
                "shortlist_cascade_removed",
                doi_key=doi_key,
                title_key=title_key[:50],
                removed=removed,
            )

        return removed

    async def list_entries(self, exclude_dismissed: bool = True) -> List[ShortlistEntry]:
        """Get shortlist entries in insertion order.

        Args:
            exclude_dismissed: Drop entries whose identity is now dismissed.

        Returns:
            Shortlist entries.
        """
        aggregate, _ = await self._load()
        if not exclude_dismissed or not aggregate.entries:
            return aggregate.entries

        dismissed = await load_dismissed_keys(self.store)
        return [e for e in aggregate.entries if not dismissed.contains(e.keys)]
