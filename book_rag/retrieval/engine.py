from typing import Optional

from ..config import RAGConfig
from ..vector_store.embedder import Embedder, create_embedder
from ..vector_store.models import ScoredResult
from ..vector_store.store import VectorStore, create_store
from .ingestion import IngestionPipeline, ProgressCallback
from .models import IngestStats, RetrievalResult
from .query import QueryPipeline


class RetrievalEngine:
    """
    Caller-facing ingest/query operations over one embedder and one store.

    The store object is created once and shared by both pipelines; there
    is no module-level handle.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        config: Optional[RAGConfig] = None,
    ):
        self.config = config or RAGConfig()
        self.embedder = embedder
        self.store = store
        self.ingestion = IngestionPipeline(
            embedder, store, batch_size=self.config.ingest_batch_size,
        )
        self.queries = QueryPipeline(
            embedder, store, max_context_tokens=self.config.max_context_tokens,
        )

    @classmethod
    def from_config(cls, config: Optional[RAGConfig] = None) -> "RetrievalEngine":
        """Build embedder and store from configuration (env by default)."""
        cfg = config or RAGConfig.from_env()
        return cls(create_embedder(cfg), create_store(cfg), cfg)

    def ingest(
        self,
        document_text: str,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None,
        document_id: str = "document",
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestStats:
        return self.ingestion.ingest(
            document_text,
            chunk_size=self.config.chunk_size if chunk_size is None else chunk_size,
            overlap=self.config.chunk_overlap if overlap is None else overlap,
            document_id=document_id,
            progress_callback=progress_callback,
        )

    def ingest_file(
        self,
        path: str,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestStats:
        return self.ingestion.ingest_file(
            path,
            chunk_size=self.config.chunk_size if chunk_size is None else chunk_size,
            overlap=self.config.chunk_overlap if overlap is None else overlap,
            progress_callback=progress_callback,
        )

    def query(self, text: str, top_k: Optional[int] = None) -> list[ScoredResult]:
        return self.queries.query(text, top_k=self.config.top_k if top_k is None else top_k)

    def retrieve(self, text: str, top_k: Optional[int] = None) -> RetrievalResult:
        return self.queries.retrieve(text, top_k=self.config.top_k if top_k is None else top_k)

    def health_check(self) -> dict:
        return {
            **self.store.health_check(),
            **self.embedder.health_check(),
        }

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "RetrievalEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
