"""
Retrieval component: ingestion and query orchestration.

Quick Start:
    from book_rag.retrieval import RetrievalEngine

    engine = RetrievalEngine.from_config()
    engine.ingest_file("book.pdf", chunk_size=2000, overlap=400)
    result = engine.retrieve("How do boys become men?", top_k=5)
    print(result.context_text)
"""

from .engine import RetrievalEngine
from .ingestion import IngestionPipeline
from .models import IngestionState, IngestStats, RetrievalResult
from .query import CONTEXT_SEPARATOR, QueryPipeline, build_context

__all__ = [
    "RetrievalEngine",
    "IngestionPipeline",
    "QueryPipeline",
    "IngestionState",
    "IngestStats",
    "RetrievalResult",
    "CONTEXT_SEPARATOR",
    "build_context",
]
