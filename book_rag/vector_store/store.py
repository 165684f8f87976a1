"""
Vector Store - Durable persistence of embedded chunks

Two backends implement the same contract:
- SQLiteVectorStore: single-file SQLite database, transactional upserts
- ChromaVectorStore: ChromaDB collection used purely as a record store

Neither backend ranks anything. ``scan_all`` hands every record to the
Python ranker, which does an exact brute-force cosine scan.

Design:
- Upsert semantics: records are replaced by id, never partially updated
- One upsert call is one transaction (SQLite); all or nothing
- The storage handle is created lazily on first use, once per store
  object, behind a lock so concurrent first callers share one handle
- Writes and reads share a store-level lock, so a scan never observes a
  half-written batch
- All embeddings in a store share one dimension; upserts that would break
  this are rejected before anything is written

Usage:
    from book_rag.vector_store import SQLiteVectorStore

    store = SQLiteVectorStore("chroma_db/vectors.db")
    store.upsert(records)
    print(store.count())
"""

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import chromadb
from chromadb.errors import ChromaError

from ..config import RAGConfig
from ..exceptions import (
    DimensionMismatchError,
    InvalidConfigurationError,
    StoreUnavailableError,
)
from .models import Record

logger = logging.getLogger(__name__)


class VectorStore(ABC):
    """Contract shared by all record stores."""

    @abstractmethod
    def upsert(self, records: list[Record]) -> None:
        """Insert or replace records by id, atomically per call."""

    @abstractmethod
    def scan_all(self) -> list[Record]:
        """Return every stored record."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored records."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every stored record."""

    @abstractmethod
    def close(self) -> None:
        """Release the storage handle."""

    @abstractmethod
    def _stored_dimension(self) -> Optional[int]:
        """Dimension of the vectors already stored, or None if empty."""

    def has_any(self) -> bool:
        return self.count() > 0

    def health_check(self) -> dict[str, Any]:
        """
        Check that the store can be opened and read.

        Returns:
            Dict with 'store_ok' (bool), 'records' (int) and 'error' (str).
        """
        result: dict[str, Any] = {
            "store_ok": False,
            "backend": type(self).__name__,
            "records": 0,
            "error": "",
        }
        try:
            result["records"] = self.count()
            result["store_ok"] = True
        except StoreUnavailableError as e:
            result["error"] = str(e)
        return result

    def _validate_dimensions(self, records: list[Record]) -> None:
        """Reject records whose dimension differs from each other or the store."""
        expected = self._stored_dimension()
        reference_id = None
        if expected is None:
            expected = records[0].dimensions
            reference_id = records[0].id

        for record in records:
            if record.dimensions != expected:
                logger.error(
                    "Rejecting upsert: %s has %d dimensions, expected %d (%s)",
                    record.id, record.dimensions, expected,
                    f"from {reference_id}" if reference_id else "from store",
                )
                raise DimensionMismatchError(
                    expected=expected,
                    actual=record.dimensions,
                    record_id=record.id,
                )

    def __enter__(self) -> "VectorStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# =============================================================================
# SQLITE BACKEND
# =============================================================================


_SCHEMA = """
CREATE TABLE IF NOT EXISTS vectors (
    id TEXT PRIMARY KEY,
    text TEXT NOT NULL,
    embedding TEXT NOT NULL,
    metadata TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_vectors_created_at ON vectors(created_at);
"""


class SQLiteVectorStore(VectorStore):
    """
    Record store backed by a single SQLite file.

    Embeddings and metadata are stored as JSON text next to the raw chunk
    text. Pass ``":memory:"`` as path for a throwaway in-process store.
    """

    def __init__(self, path: str = "chroma_db/vectors.db", timeout: float = 30.0):
        """
        Initialize the store. No file is touched until first use.

        Args:
            path: Database file path, or ":memory:".
            timeout: Seconds to wait for a database lock.
        """
        self.path = path
        self.timeout = timeout
        self._conn: Optional[sqlite3.Connection] = None
        self._init_lock = threading.Lock()
        self._lock = threading.RLock()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            with self._init_lock:
                if self._conn is None:
                    self._conn = self._open()
        return self._conn

    def _open(self) -> sqlite3.Connection:
        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                self.path,
                timeout=self.timeout,
                check_same_thread=False,
            )
            conn.executescript(_SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailableError(
                f"Cannot open vector database at {self.path}",
                original_error=e,
            ) from e
        logger.info("Opened vector database at %s", self.path)
        return conn

    def upsert(self, records: list[Record]) -> None:
        if not records:
            return

        rows = [
            (
                record.id,
                record.text,
                json.dumps(record.embedding),
                json.dumps(record.metadata, ensure_ascii=False),
                record.created_at.isoformat(),
            )
            for record in records
        ]

        conn = self._connection()
        with self._lock:
            self._validate_dimensions(records)
            try:
                with conn:
                    conn.executemany(
                        "INSERT OR REPLACE INTO vectors "
                        "(id, text, embedding, metadata, created_at) "
                        "VALUES (?, ?, ?, ?, ?)",
                        rows,
                    )
            except sqlite3.Error as e:
                raise StoreUnavailableError(
                    f"Upsert of {len(rows)} records failed",
                    original_error=e,
                ) from e
        logger.debug("Upserted %d records", len(rows))

    def scan_all(self) -> list[Record]:
        rows = self._fetch(
            "SELECT id, text, embedding, metadata, created_at "
            "FROM vectors ORDER BY rowid"
        )
        return [
            Record(
                id=row[0],
                text=row[1],
                embedding=json.loads(row[2]),
                metadata=json.loads(row[3]) if row[3] else {},
                created_at=datetime.fromisoformat(row[4]),
            )
            for row in rows
        ]

    def count(self) -> int:
        return self._fetch("SELECT COUNT(*) FROM vectors")[0][0]

    def clear(self) -> None:
        conn = self._connection()
        with self._lock:
            try:
                with conn:
                    deleted = conn.execute("DELETE FROM vectors").rowcount
            except sqlite3.Error as e:
                raise StoreUnavailableError(
                    "Clearing the vector database failed",
                    original_error=e,
                ) from e
        logger.info("Cleared %d records from %s", deleted, self.path)

    def close(self) -> None:
        with self._init_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _stored_dimension(self) -> Optional[int]:
        rows = self._fetch("SELECT embedding FROM vectors LIMIT 1")
        return len(json.loads(rows[0][0])) if rows else None

    def _fetch(self, sql: str) -> list[tuple]:
        conn = self._connection()
        with self._lock:
            try:
                return conn.execute(sql).fetchall()
            except sqlite3.Error as e:
                raise StoreUnavailableError(
                    "Reading from the vector database failed",
                    original_error=e,
                ) from e


# =============================================================================
# CHROMADB BACKEND
# =============================================================================


class ChromaVectorStore(VectorStore):
    """
    Record store backed by a ChromaDB collection.

    Only used for persistence: vectors are read back with ``get`` and ranked
    by the Python ranker, never through ChromaDB's ANN query. ChromaDB has
    no multi-row transactions, so a failed upsert may leave part of a
    batch written or replaced records deleted.
    """

    _CREATED_AT_KEY = "created_at"

    def __init__(
        self,
        persist_directory: str = "chroma_db",
        collection_name: str = "book_chunks",
        client: Optional[chromadb.ClientAPI] = None,
    ):
        """
        Initialize the store. The client is created on first use.

        Args:
            persist_directory: Directory for ChromaDB persistent storage.
            collection_name: ChromaDB collection name.
            client: Optional pre-created ChromaDB client (for testing).
        """
        self.persist_directory = persist_directory
        self.collection_name = collection_name
        self._client = client
        self._collection = None
        self._init_lock = threading.Lock()
        self._lock = threading.RLock()

    def _get_collection(self):
        if self._collection is None:
            with self._init_lock:
                if self._collection is None:
                    try:
                        if self._client is None:
                            self._client = chromadb.PersistentClient(
                                path=self.persist_directory,
                            )
                        self._collection = self._client.get_or_create_collection(
                            name=self.collection_name,
                            metadata={"description": "Embedded book chunks"},
                        )
                    except (ChromaError, ValueError, OSError) as e:
                        raise StoreUnavailableError(
                            f"Cannot open ChromaDB collection '{self.collection_name}'",
                            original_error=e,
                        ) from e
        return self._collection

    def upsert(self, records: list[Record]) -> None:
        if not records:
            return

        collection = self._get_collection()
        with self._lock:
            self._validate_dimensions(records)
            ids = [r.id for r in records]
            try:
                # Replace, never merge: no metadata key of the old record survives.
                collection.delete(ids=ids)
                collection.add(
                    ids=ids,
                    embeddings=[r.embedding for r in records],
                    documents=[r.text for r in records],
                    metadatas=[self._flatten_metadata(r) for r in records],
                )
            except (ChromaError, ValueError) as e:
                raise StoreUnavailableError(
                    f"Upsert of {len(records)} records failed",
                    original_error=e,
                ) from e

    def scan_all(self) -> list[Record]:
        raw = self._call(
            lambda c: c.get(include=["documents", "metadatas", "embeddings"])
        )
        records: list[Record] = []
        for i, record_id in enumerate(raw["ids"]):
            metadata = dict(raw["metadatas"][i] or {})
            created_at = metadata.pop(self._CREATED_AT_KEY, None)
            records.append(Record(
                id=record_id,
                text=raw["documents"][i],
                embedding=[float(x) for x in raw["embeddings"][i]],
                metadata=metadata,
                created_at=(
                    datetime.fromisoformat(created_at)
                    if created_at else datetime.now(timezone.utc)
                ),
            ))
        return records

    def count(self) -> int:
        return self._call(lambda c: c.count())

    def clear(self) -> None:
        """
        Drop the collection; it is recreated empty on next use.

        Chroma fixes a collection's dimension on first write, so deleting
        ids alone would pin the old embedding model's dimension.
        """
        collection = self._get_collection()
        with self._lock:
            try:
                deleted = collection.count()
                self._client.delete_collection(name=self.collection_name)
            except (ChromaError, ValueError) as e:
                raise StoreUnavailableError(
                    f"Clearing collection '{self.collection_name}' failed",
                    original_error=e,
                ) from e
            with self._init_lock:
                self._collection = None
        logger.info("Cleared %d records from collection %s", deleted, self.collection_name)

    def close(self) -> None:
        with self._init_lock:
            self._collection = None

    def _stored_dimension(self) -> Optional[int]:
        raw = self._call(lambda c: c.get(limit=1, include=["embeddings"]))
        embeddings = raw.get("embeddings")
        if embeddings is None or len(embeddings) == 0:
            return None
        return len(embeddings[0])

    def _call(self, operation):
        collection = self._get_collection()
        with self._lock:
            try:
                return operation(collection)
            except (ChromaError, ValueError) as e:
                raise StoreUnavailableError(
                    f"ChromaDB operation on '{self.collection_name}' failed",
                    original_error=e,
                ) from e

    def _flatten_metadata(self, record: Record) -> dict[str, Any]:
        """
        Flatten record metadata for ChromaDB storage.

        ChromaDB only supports flat scalar metadata. Lists become
        comma-separated strings, nested dicts become JSON, None is dropped.
        """
        flat: dict[str, Any] = {}
        for key, value in record.metadata.items():
            if value is None:
                continue
            if isinstance(value, list):
                flat[key] = ",".join(str(item) for item in value)
            elif isinstance(value, dict):
                flat[key] = json.dumps(value, ensure_ascii=False)
            else:
                flat[key] = value
        flat[self._CREATED_AT_KEY] = record.created_at.isoformat()
        return flat


def create_store(config: RAGConfig) -> VectorStore:
    """
    Build the store selected by ``config.store_backend``.

    Raises:
        InvalidConfigurationError: For an unknown backend.
    """
    backend = config.store_backend.lower()
    if backend == "sqlite":
        return SQLiteVectorStore(config.db_path)
    if backend == "chroma":
        return ChromaVectorStore(
            persist_directory=config.chroma_persist_dir,
            collection_name=config.chroma_collection,
        )
    raise InvalidConfigurationError(
        f"Unknown vector store backend '{config.store_backend}'",
        details="Expected 'sqlite' or 'chroma'",
    )
