"""Reference lifecycle cascade.

When an article is promoted into the reference catalogue (or an existing
reference is edited), any shortlist entry carrying the same identity is
obsolete and gets purged. A reference's identity includes the DOI of its
``doi.org`` URL, the same way discovery excludes it.
"""

from typing import Any

import structlog

from litscout.models.operations import CascadeResult
from litscout.services.shortlist_service import ShortlistService
from litscout.utils.keys import keys_of, url_doi_key

logger = structlog.get_logger()


class ReferenceCascade:
    """Purges the shortlist in response to reference lifecycle events."""

    def __init__(self, shortlist: ShortlistService):
        self.shortlist = shortlist

    async def _purge(self, reference: Any) -> int:
        keys = keys_of(reference)
        removed = await self.shortlist.remove_by_keys(keys.doi_key, keys.title_key)

        url_doi = url_doi_key(reference)
        if url_doi and url_doi != keys.doi_key:
            removed += await self.shortlist.remove_by_keys(url_doi, "")
        return removed

    async def on_reference_created(self, reference: Any) -> CascadeResult:
        """Purge shortlist entries matching a newly catalogued reference.

        Args:
            reference: The created reference (model or mapping with
                doi/title/url).

        Returns:
            CascadeResult with the number of entries removed.
        """
        removed = await self._purge(reference)

        keys = keys_of(reference)
        logger.info(
            "reference_created_cascade",
            doi_key=keys.doi_key or url_doi_key(reference),
            title_key=keys.title_key[:50],
            removed=removed,
        )
        return CascadeResult(event="created", removed=removed)

    async def on_reference_updated(self, before: Any, after: Any) -> CascadeResult:
        """Purge shortlist entries matching either version of an edited reference.

        Args:
            before: Reference as it was before the edit.
            after: Reference as it is after the edit.

        Returns:
            CascadeResult with the total number of entries removed.
        """
        removed = 0
        for ref in (before, after):
            if ref is None:
                continue
            removed += await self._purge(ref)

        logger.info("reference_updated_cascade", removed=removed)
        return CascadeResult(event="updated", removed=removed)
