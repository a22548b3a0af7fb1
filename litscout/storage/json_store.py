"""JSON file document store.

One file per collection under a base directory. Writes use the
temporary file + fsync + rename pattern so a crash never leaves a
half-written collection, and the etag check plus write run under an
exclusive ``flock`` so separate processes sharing the directory still get
compare-and-swap semantics. Locking and file I/O run in a worker thread so
the event loop keeps serving concurrent source fetches.
"""

import asyncio
import fcntl
import json
import os
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import structlog

from litscout.storage.base import DocumentStore, StoredDocument, matches_filters
from litscout.utils.exceptions import PersistenceError, VersionConflictError

logger = structlog.get_logger()

DEFAULT_STORE_PATH = Path("data")


class JsonDocumentStore(DocumentStore):
    """File-backed store.

    Collection file layout::

        {"<doc_id>": {"etag": "<hex>", "data": {...}}, ...}
    """

    def __init__(self, base_path: Optional[Path] = None):
        """Initialize the store.

        Args:
            base_path: Directory holding one ``<collection>.json`` per collection.
        """
        self.base_path = Path(base_path) if base_path else DEFAULT_STORE_PATH

        logger.info("json_store_initialized", path=str(self.base_path))

    @property
    def name(self) -> str:
        return "json"

    def _ensure_directory(self) -> None:
        """Ensure the store directory exists with owner-only permissions."""
        self.base_path.mkdir(parents=True, exist_ok=True)

        try:
            os.chmod(self.base_path, 0o700)
        except OSError as e:
            logger.warning("store_dir_chmod_failed", error=str(e))

    def _path(self, collection: str) -> Path:
        if not collection.replace("_", "").isalnum():
            raise PersistenceError(f"Invalid collection name: {collection!r}")
        return self.base_path / f"{collection}.json"

    @contextmanager
    def _locked(self, collection: str) -> Iterator[None]:
        self._path(collection)
        lock_path = self.base_path / f".{collection}.lock"
        try:
            self._ensure_directory()
            lock_file = open(lock_path, "a")
        except OSError as e:
            logger.error("store_unreachable", path=str(self.base_path), error=str(e))
            raise PersistenceError(f"Store directory unavailable: {e}") from e

        with lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load(self, collection: str) -> Dict[str, Dict[str, Any]]:
        path = self._path(collection)
        if not path.exists():
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("store_parse_error", path=str(path), error=str(e))
            raise PersistenceError(f"Corrupted collection file {path}: {e}") from e
        except OSError as e:
            logger.error("store_read_error", path=str(path), error=str(e))
            raise PersistenceError(f"Failed to read {path}: {e}") from e

        if not isinstance(raw, dict):
            raise PersistenceError(f"Corrupted collection file {path}: not an object")
        return raw

    def _save(self, collection: str, docs: Dict[str, Dict[str, Any]]) -> None:
        path = self._path(collection)

        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self.base_path, prefix=f".{collection}_", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(docs, f, indent=2, default=str)
                    f.flush()
                    os.fsync(f.fileno())

                os.replace(tmp_path, path)
                os.chmod(path, 0o600)
            except Exception:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.error("store_save_error", path=str(path), error=str(e))
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def _get_sync(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        with self._locked(collection):
            entry = self._load(collection).get(doc_id)
        if entry is None:
            return None
        return StoredDocument(doc_id=doc_id, data=entry["data"], etag=entry["etag"])

    def _replace_sync(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        expected_etag: Optional[str],
    ) -> StoredDocument:
        with self._locked(collection):
            docs = self._load(collection)
            current = docs.get(doc_id)
            actual = current["etag"] if current else None

            if actual != expected_etag:
                logger.debug(
                    "store_version_conflict",
                    store=self.name,
                    collection=collection,
                    doc_id=doc_id,
                )
                raise VersionConflictError(collection, doc_id, expected_etag, actual)

            etag = uuid.uuid4().hex
            docs[doc_id] = {"etag": etag, "data": data}
            self._save(collection, docs)

        logger.debug("store_document_saved", collection=collection, doc_id=doc_id)
        return StoredDocument(doc_id=doc_id, data=data, etag=etag)

    def _query_sync(self, collection: str, equals: Dict[str, Any]) -> List[StoredDocument]:
        with self._locked(collection):
            docs = self._load(collection)
        return [
            StoredDocument(doc_id=doc_id, data=entry["data"], etag=entry["etag"])
            for doc_id, entry in docs.items()
            if matches_filters(entry["data"], equals)
        ]

    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        return await asyncio.to_thread(self._get_sync, collection, doc_id)

    async def replace(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        expected_etag: Optional[str],
    ) -> StoredDocument:
        return await asyncio.to_thread(
            self._replace_sync, collection, doc_id, data, expected_etag
        )

    async def query(self, collection: str, **equals: Any) -> List[StoredDocument]:
        return await asyncio.to_thread(self._query_sync, collection, equals)
