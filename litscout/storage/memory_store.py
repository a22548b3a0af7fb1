"""In-process document store.

Used for tests and ephemeral runs. Reads and writes deep-copy the
document bodies so callers can never mutate stored state in place.
"""

import copy
import uuid
from typing import Any, Dict, List, Optional

import structlog

from litscout.storage.base import DocumentStore, StoredDocument, matches_filters
from litscout.utils.exceptions import VersionConflictError

logger = structlog.get_logger()


class MemoryDocumentStore(DocumentStore):
    """Dictionary-backed store with etag compare-and-swap."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, StoredDocument]] = {}

    @property
    def name(self) -> str:
        return "memory"

    def _collection(self, collection: str) -> Dict[str, StoredDocument]:
        return self._collections.setdefault(collection, {})

    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return None
        return copy.deepcopy(doc)

    async def replace(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        expected_etag: Optional[str],
    ) -> StoredDocument:
        docs = self._collection(collection)
        current = docs.get(doc_id)
        actual = current.etag if current else None

        if actual != expected_etag:
            logger.debug(
                "store_version_conflict",
                store=self.name,
                collection=collection,
                doc_id=doc_id,
            )
            raise VersionConflictError(collection, doc_id, expected_etag, actual)

        stored = StoredDocument(
            doc_id=doc_id, data=copy.deepcopy(data), etag=uuid.uuid4().hex
        )
        docs[doc_id] = stored
        return copy.deepcopy(stored)

    async def query(self, collection: str, **equals: Any) -> List[StoredDocument]:
        return [
            copy.deepcopy(doc)
            for doc in self._collection(collection).values()
            if matches_filters(doc.data, equals)
        ]
