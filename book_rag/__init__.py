"""
book_rag - Passage retrieval for a single-document chat assistant

Turns the text of one document into embedded, persisted chunks and answers
similarity queries with a ranked top-K result set.

Quick Start:
    from book_rag import RetrievalEngine

    engine = RetrievalEngine.from_config()
    stats = engine.ingest(document_text, chunk_size=2000, overlap=400)
    for hit in engine.query("What is a rite of passage?", top_k=3):
        print(hit.score, hit.text[:80])
"""

__version__ = "1.0.0"

from .config import RAGConfig
from .exceptions import (
    DimensionMismatchError,
    EmbeddingUnavailableError,
    InvalidConfigurationError,
    MissingCredentialError,
    RetrievalEngineError,
    StoreUnavailableError,
    format_error_chain,
    is_retryable,
)
from .retrieval import IngestStats, RetrievalEngine, RetrievalResult
from .vector_store import Record, ScoredResult

__all__ = [
    "__version__",
    "RAGConfig",
    "RetrievalEngine",
    "IngestStats",
    "RetrievalResult",
    "Record",
    "ScoredResult",
    "RetrievalEngineError",
    "InvalidConfigurationError",
    "MissingCredentialError",
    "EmbeddingUnavailableError",
    "StoreUnavailableError",
    "DimensionMismatchError",
    "is_retryable",
    "format_error_chain",
]
