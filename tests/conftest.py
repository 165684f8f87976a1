"""
Pytest fixtures for the retrieval engine tests.
"""

import hashlib
import logging
from typing import Optional

import pytest

from book_rag.exceptions import EmbeddingUnavailableError
from book_rag.logging_config import LOGGER_NAME
from book_rag.vector_store.embedder import Embedder
from book_rag.vector_store.store import SQLiteVectorStore


class StubEmbedder(Embedder):
    """
    Deterministic embedder: each text maps to a fixed vector derived from
    its SHA-256 digest. Identical texts get identical vectors.
    """

    def __init__(self, dimensions: int = 16, fail_on_call: Optional[int] = None, **kwargs):
        kwargs.setdefault("batch_delay", 0.0)
        super().__init__(model="stub", **kwargs)
        self.size = dimensions
        self.fail_on_call = fail_on_call
        self.calls: list[list[str]] = []

    def _request(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise EmbeddingUnavailableError("stub failure", status_code=503)
        return [text_vector(t, self.size) for t in texts]

    def health_check(self) -> dict:
        return {"healthy": True, "provider": "stub", "model": self.model, "error": ""}


def text_vector(text: str, dimensions: int = 16) -> list[float]:
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [(digest[i % len(digest)] - 127.5) / 127.5 for i in range(dimensions)]


@pytest.fixture
def stub_embedder():
    return StubEmbedder()


@pytest.fixture
def embedder_factory():
    """Build stub embedders with custom dimensions or a scripted failure."""
    return StubEmbedder


@pytest.fixture
def memory_store():
    store = SQLiteVectorStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def sample_document():
    """A short multi-paragraph document with irregular whitespace."""
    return (
        "Chapter One.\n\n\n\nThe boy walked   into the forest.\tHe was alone.\n"
        "The old men waited by the fire. They had stories to tell.\n\n"
        "Chapter Two.\n\nMorning came slowly over the hills, and the boy returned "
        "a different person than the one who had left. The village noticed."
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging (CLI runs) after each test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
