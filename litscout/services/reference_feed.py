"""Existing-reference identity feed.

Discovery never shows an article the user already has in their reference
catalogue. The catalogue itself lives elsewhere; the engine only needs a
read-only projection of each reference's title, DOI and URL.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List

import structlog

from litscout.models.article import ExistingReferenceIdentity
from litscout.storage.base import REFERENCES_COLLECTION, DocumentStore
from litscout.utils.exceptions import PersistenceError

logger = structlog.get_logger()


class ReferenceFeed(ABC):
    """Source of catalogued reference identities"""

    @abstractmethod
    async def list_identities(self) -> List[ExistingReferenceIdentity]:
        """Get the identity of every catalogued reference

        Raises:
            PersistenceError: If the catalogue cannot be read
        """
        pass


class StoreReferenceFeed(ReferenceFeed):
    """Reads reference identities from a document store collection"""

    def __init__(self, store: DocumentStore, collection: str = REFERENCES_COLLECTION):
        self.store = store
        self.collection = collection

    async def list_identities(self) -> List[ExistingReferenceIdentity]:
        try:
            docs = await self.store.query(self.collection)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Reference feed unavailable: {e}") from e

        identities = [ExistingReferenceIdentity.model_validate(doc.data) for doc in docs]
        logger.debug("reference_identities_loaded", count=len(identities))
        return identities


class StaticReferenceFeed(ReferenceFeed):
    """Fixed in-memory identity list, for tests and one-off runs"""

    def __init__(self, references: Iterable[Any] = ()):
        self._identities = [
            r if isinstance(r, ExistingReferenceIdentity)
            else ExistingReferenceIdentity.model_validate(r)
            for r in references
        ]

    async def list_identities(self) -> List[ExistingReferenceIdentity]:
        return list(self._identities)
