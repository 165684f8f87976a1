"""
Vector Store Module - Embedding, persistence and exact cosine ranking

Quick Start:
    from book_rag.vector_store import OpenAIEmbedder, SQLiteVectorStore, rank

    embedder = OpenAIEmbedder()
    store = SQLiteVectorStore("chroma_db/vectors.db")

    query_vector = embedder.embed("What is a rite of passage?")
    results = rank(query_vector, store.scan_all(), top_k=3)
"""

from .embedder import Embedder, OllamaEmbedder, OpenAIEmbedder, create_embedder
from .models import Record, ScoredResult
from .ranker import cosine_similarity, rank
from .store import ChromaVectorStore, SQLiteVectorStore, VectorStore, create_store

__all__ = [
    "Embedder",
    "OpenAIEmbedder",
    "OllamaEmbedder",
    "create_embedder",
    "Record",
    "ScoredResult",
    "cosine_similarity",
    "rank",
    "VectorStore",
    "SQLiteVectorStore",
    "ChromaVectorStore",
    "create_store",
]
