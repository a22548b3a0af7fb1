"""Newsreader operation facade.

Single entry point used by the HTTP server and the CLI. Each operation
runs under its own correlation ID and accepts either model instances or
plain mappings as they arrive from JSON request bodies.
"""

from typing import Any, List, Mapping, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from litscout.models.article import CandidateArticle, ShortlistEntry
from litscout.models.discovery import DiscoveryResult
from litscout.models.operations import (
    AddResult,
    CascadeResult,
    DismissResult,
    RemoveResult,
)
from litscout.observability.context import correlation_id_context
from litscout.orchestration.context import NewsreaderContext
from litscout.utils.exceptions import ValidationError

logger = structlog.get_logger()

ArticleInput = Union[CandidateArticle, Mapping[str, Any]]


def to_article(article: ArticleInput) -> CandidateArticle:
    """Coerce a request body into a CandidateArticle.

    Raises:
        ValidationError: If the body does not describe an article.
    """
    if isinstance(article, CandidateArticle):
        return article
    try:
        return CandidateArticle.model_validate(dict(article))
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid article: {e}") from e


class Newsreader:
    """Discovery, shortlist and dismissal operations over one context."""

    def __init__(self, context: NewsreaderContext):
        self.context = context

    async def list_candidates(self, only_new: bool = False) -> DiscoveryResult:
        """Discover and rank new candidate articles.

        Args:
            only_new: Restrict to articles published in the recent window.

        Returns:
            DiscoveryResult, newest first, with per-source diagnostics.
        """
        with correlation_id_context():
            return await self.context.discovery_service.list_candidates(only_new)

    async def get_shortlist(self) -> List[ShortlistEntry]:
        """Shortlist entries, dismissed identities excluded."""
        with correlation_id_context():
            return await self.context.shortlist_service.list_entries(
                exclude_dismissed=True
            )

    async def add_to_shortlist(self, article: ArticleInput) -> AddResult:
        with correlation_id_context():
            return await self.context.shortlist_service.add(to_article(article))

    async def remove_from_shortlist(self, identifier: Optional[str]) -> RemoveResult:
        """Remove shortlist entries by DOI or title.

        Args:
            identifier: DOI or title, possibly percent-encoded.

        Returns:
            RemoveResult telling whether anything was removed.
        """
        with correlation_id_context():
            removed = await self.context.shortlist_service.remove(identifier or "")
            return RemoveResult(removed=removed)

    async def dismiss(self, article: ArticleInput) -> DismissResult:
        """Permanently dismiss an article and purge it from the shortlist.

        Args:
            article: Article with at least a DOI or a title.

        Returns:
            DismissResult with the record id and shortlist entries removed.
        """
        with correlation_id_context():
            record, removed = await self.context.dismissal_service.dismiss(
                to_article(article)
            )
            return DismissResult(record_id=record.id, removed_from_shortlist=removed)

    async def on_reference_created(self, reference: Any) -> CascadeResult:
        with correlation_id_context():
            return await self.context.reference_cascade.on_reference_created(reference)

    async def on_reference_updated(self, before: Any, after: Any) -> CascadeResult:
        with correlation_id_context():
            return await self.context.reference_cascade.on_reference_updated(
                before, after
            )
