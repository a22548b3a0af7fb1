"""Dismissal Service.

Dismissals are permanent: there is no un-dismiss. Each dismissed identity
is stored as its own document under an id derived from its keys, so
dismissing the same work twice overwrites a single record.
"""

from typing import Any, List, Mapping, Tuple

import structlog

from litscout.models.article import DismissedRecord, utc_now
from litscout.observability.metrics import DISMISSALS
from litscout.services.dedup_service import DismissedKeys
from litscout.services.shortlist_service import (
    ShortlistService,
    cas_retry,
    load_dismissed_keys,
    load_dismissed_records,
)
from litscout.storage.base import DISMISSED_COLLECTION, DocumentStore
from litscout.utils.exceptions import ValidationError
from litscout.utils.keys import ArticleKeys, dismissal_record_id, keys_of

logger = structlog.get_logger()


def _text(article: Any, name: str) -> Any:
    if isinstance(article, Mapping):
        return article.get(name)
    return getattr(article, name, None)


class DismissalService:
    """Records dismissals and keeps the shortlist consistent with them."""

    def __init__(self, store: DocumentStore, shortlist: ShortlistService):
        """Initialize the dismissal service.

        Args:
            store: Document store holding dismissal records.
            shortlist: Shortlist purged whenever an identity is dismissed.
        """
        self.store = store
        self.shortlist = shortlist

    async def dismiss(self, article: Any) -> Tuple[DismissedRecord, int]:
        """Dismiss an article and purge it from the shortlist.

        The shortlist cascade completes before this method returns.

        Args:
            article: Candidate, shortlist entry or raw mapping with at least
                a DOI or a title.

        Returns:
            Tuple of (stored record, number of shortlist entries removed).

        Raises:
            ValidationError: If the article has neither DOI nor title.
            PersistenceError: If the store fails or conflicts persist.
        """
        keys = keys_of(article)
        if not keys:
            raise ValidationError("DOI or title required")

        record = DismissedRecord(
            id=dismissal_record_id(keys),
            doi=_text(article, "doi"),
            title=_text(article, "title"),
            url=_text(article, "url"),
            source=_text(article, "source"),
            authors=_text(article, "authors"),
            year=_text(article, "year"),
            doi_key=keys.doi_key,
            title_key=keys.title_key,
            date_dismissed=utc_now(),
        )

        created = await self._upsert(record)
        DISMISSALS.labels(outcome="created" if created else "updated").inc()

        removed = await self.shortlist.remove_by_keys(keys.doi_key, keys.title_key)

        logger.info(
            "article_dismissed",
            record_id=record.id,
            doi=record.doi,
            title=(record.title or "")[:50],
            removed_from_shortlist=removed,
        )
        return record, removed

    @cas_retry
    async def _upsert(self, record: DismissedRecord) -> bool:
        existing = await self.store.get(DISMISSED_COLLECTION, record.id)
        await self.store.replace(
            DISMISSED_COLLECTION,
            record.id,
            record.model_dump(mode="json", by_alias=True),
            expected_etag=existing.etag if existing else None,
        )
        return existing is None

    async def list_records(self) -> List[DismissedRecord]:
        """Get every dismissed record."""
        return await load_dismissed_records(self.store)

    async def get_keys(self) -> DismissedKeys:
        """Collect dismissed key sets and title token sets.

        Returns:
            DismissedKeys, as consumed by the admission gate.
        """
        return await load_dismissed_keys(self.store)

    async def is_dismissed(self, keys: ArticleKeys) -> bool:
        """Check whether either key of an identity has been dismissed."""
        return (await self.get_keys()).contains(keys)
