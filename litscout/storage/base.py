"""Document store contract.

The shortlist aggregate and dismissal records live in a generic document
store with three operations: keyed get, conditional replace and
equality query. Every write is a compare-and-swap on an opaque etag that
the store assigns, so concurrent read-modify-write cycles cannot silently
overwrite each other.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SHORTLIST_COLLECTION = "shortlist"
DISMISSED_COLLECTION = "dismissed"
REFERENCES_COLLECTION = "references"


@dataclass
class StoredDocument:
    """A document as read from the store, with its current etag."""

    doc_id: str
    data: Dict[str, Any] = field(default_factory=dict)
    etag: str = ""


class DocumentStore(ABC):
    """Abstract base class for document persistence backends

    Implementations must make replace() atomic with respect to the etag
    check: the write happens only if the stored etag still equals
    ``expected_etag`` at the moment of writing.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        """Read one document

        Args:
            collection: Collection name
            doc_id: Document id

        Returns:
            StoredDocument, or None if it does not exist

        Raises:
            PersistenceError: If the backend is unreachable
        """
        pass

    @abstractmethod
    async def replace(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        expected_etag: Optional[str],
    ) -> StoredDocument:
        """Conditionally write a whole document

        Args:
            collection: Collection name
            doc_id: Document id
            data: Full document body
            expected_etag: Etag read before mutating, or None to require
                that the document does not exist yet

        Returns:
            The stored document with its new etag

        Raises:
            VersionConflictError: If the stored etag differs
            PersistenceError: If the backend is unreachable
        """
        pass

    @abstractmethod
    async def query(self, collection: str, **equals: Any) -> List[StoredDocument]:
        """Scan a collection for documents whose fields equal the filters

        Args:
            collection: Collection name
            **equals: Field/value pairs that must all match

        Returns:
            Matching documents in insertion order

        Raises:
            PersistenceError: If the backend is unreachable
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for logging"""
        pass


def matches_filters(data: Dict[str, Any], equals: Dict[str, Any]) -> bool:
    """Check a document body against equality filters."""
    return all(data.get(k) == v for k, v in equals.items())
