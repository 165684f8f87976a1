from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

from dotenv import load_dotenv

from .exceptions import InvalidConfigurationError


@dataclass
class RAGConfig:
    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-small"
    openai_api_key: Optional[str] = None
    ollama_base_url: str = "http://localhost:11434"
    embedding_batch_size: int = 100
    embedding_batch_delay: float = 0.1
    embedding_max_workers: int = 1
    embedding_timeout: float = 30.0
    store_backend: str = "sqlite"
    db_path: str = "chroma_db/vectors.db"
    chroma_persist_dir: str = "chroma_db"
    chroma_collection: str = "book_chunks"
    chunk_size: int = 2000
    chunk_overlap: int = 400
    ingest_batch_size: int = 50
    top_k: int = 5
    max_context_tokens: int = 1024

    @classmethod
    def from_env(cls) -> "RAGConfig":
        def _number(name: str, default, cast):
            value = os.environ.get(name)
            if not value:
                return default
            try:
                return cast(value)
            except ValueError as e:
                kind = "an integer" if cast is int else "a number"
                raise InvalidConfigurationError(
                    f"{name} must be {kind}, got '{value}'"
                ) from e

        def _int(name: str, default: int) -> int:
            return _number(name, default, int)

        def _float(name: str, default: float) -> float:
            return _number(name, default, float)

        provider = os.environ.get("EMBEDDING_PROVIDER", cls.embedding_provider).lower()
        default_model = "nomic-embed-text" if provider == "ollama" else cls.embedding_model

        return cls(
            embedding_provider=provider,
            embedding_model=os.environ.get("EMBEDDING_MODEL", default_model),
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            ollama_base_url=os.environ.get("OLLAMA_BASE_URL", cls.ollama_base_url),
            embedding_batch_size=_int("EMBEDDING_BATCH_SIZE", cls.embedding_batch_size),
            embedding_batch_delay=_float("EMBEDDING_BATCH_DELAY", cls.embedding_batch_delay),
            embedding_max_workers=_int("EMBEDDING_MAX_WORKERS", cls.embedding_max_workers),
            embedding_timeout=_float("EMBEDDING_TIMEOUT", cls.embedding_timeout),
            store_backend=os.environ.get("VECTOR_STORE_BACKEND", cls.store_backend).lower(),
            db_path=os.environ.get("VECTOR_DB_PATH", cls.db_path),
            chroma_persist_dir=os.environ.get("CHROMA_PERSIST_DIR", cls.chroma_persist_dir),
            chroma_collection=os.environ.get("CHROMA_COLLECTION", cls.chroma_collection),
            chunk_size=_int("CHUNK_SIZE", cls.chunk_size),
            chunk_overlap=_int("CHUNK_OVERLAP", cls.chunk_overlap),
            ingest_batch_size=_int("INGEST_BATCH_SIZE", cls.ingest_batch_size),
            top_k=_int("RETRIEVAL_TOP_K", cls.top_k),
            max_context_tokens=_int("MAX_CONTEXT_TOKENS", cls.max_context_tokens),
        )


def load_env_files(root: Path) -> None:
    """Load ``.env`` and then ``.env.local`` from ``root`` into os.environ."""
    load_dotenv(root / ".env")
    load_dotenv(root / ".env.local", override=True)
