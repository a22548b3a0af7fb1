"""Newsreader context: the one place collaborators are wired together.

Built once per process (CLI invocation or server lifetime) and reused by
every request. Services share the same document store so that shortlist,
dismissal and discovery all see one consistent state.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import aiohttp
import structlog

from litscout.models.config import NewsreaderConfig, SourceType, StorageSettings
from litscout.services.discovery_service import DiscoveryService, build_adapters
from litscout.services.dismissal_service import DismissalService
from litscout.services.providers.base import SourceAdapter
from litscout.services.reference_cascade import ReferenceCascade
from litscout.services.reference_feed import ReferenceFeed, StoreReferenceFeed
from litscout.services.relevance_filter import RelevanceFilter
from litscout.services.shortlist_service import ShortlistService
from litscout.storage.base import DocumentStore
from litscout.storage.json_store import JsonDocumentStore
from litscout.storage.memory_store import MemoryDocumentStore

logger = structlog.get_logger()


def build_store(settings: StorageSettings) -> DocumentStore:
    """Create the configured document store backend.

    Args:
        settings: Storage section of the configuration.

    Returns:
        A memory or JSON-file document store.
    """
    if settings.backend == "memory":
        return MemoryDocumentStore()
    return JsonDocumentStore(Path(settings.path))


@dataclass
class NewsreaderContext:
    """Shared collaborators for newsreader operations.

    Use as an async context manager to give all source adapters one
    pooled HTTP session for the lifetime of the context; outside of it,
    adapters open a short-lived session per call.
    """

    config: NewsreaderConfig
    store: DocumentStore
    reference_feed: Optional[ReferenceFeed] = None
    adapters: Optional[Dict[SourceType, SourceAdapter]] = None

    # Services (set in __post_init__)
    shortlist_service: ShortlistService = field(init=False)
    dismissal_service: DismissalService = field(init=False)
    reference_cascade: ReferenceCascade = field(init=False)
    discovery_service: DiscoveryService = field(init=False)

    _session: Optional[aiohttp.ClientSession] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.shortlist_service = ShortlistService(self.store)
        self.dismissal_service = DismissalService(self.store, self.shortlist_service)
        self.reference_cascade = ReferenceCascade(self.shortlist_service)
        self.discovery_service = DiscoveryService(
            config=self.config,
            shortlist=self.shortlist_service,
            dismissals=self.dismissal_service,
            reference_feed=self.reference_feed,
            adapters=self.adapters,
            relevance_filter=RelevanceFilter(self.config.relevance),
        )
        logger.debug(
            "newsreader_context_initialized",
            store=self.store.name,
            sources=[s.value for s in self.discovery_service.adapters],
            feed=type(self.reference_feed).__name__ if self.reference_feed else None,
        )

    @classmethod
    def from_config(
        cls,
        config: NewsreaderConfig,
        store: Optional[DocumentStore] = None,
        reference_feed: Optional[ReferenceFeed] = None,
    ) -> "NewsreaderContext":
        """Build a context from configuration.

        Args:
            config: Validated configuration.
            store: Document store; built from ``config.storage`` when omitted.
            reference_feed: Identity feed; defaults to the store's
                references collection.

        Returns:
            Ready-to-use context.
        """
        store = store or build_store(config.storage)
        feed = reference_feed or StoreReferenceFeed(store)
        return cls(config=config, store=store, reference_feed=feed)

    async def __aenter__(self) -> "NewsreaderContext":
        if self.adapters is None and self._session is None:
            self._session = aiohttp.ClientSession()
            self.discovery_service.adapters = build_adapters(
                self.config.sources, session=self._session
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the pooled HTTP session, if one was opened."""
        if self._session is not None:
            await self._session.close()
            self._session = None
