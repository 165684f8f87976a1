"""
Query Pipeline - query text -> embedding -> full scan -> ranked results

``query`` is the strict path: every failure propagates. ``retrieve`` is
what the chat step calls: it also assembles the context block and, when
the embedding service or the store is unavailable, returns an empty
context instead of failing, so an answer can still be generated without
retrieved passages.

Usage:
    pipeline = QueryPipeline(embedder, store)
    result = pipeline.retrieve("What does the author say about fathers?", top_k=5)
    print(result.context_text)
"""

import logging

from ..chunking.token_counter import count_tokens
from ..exceptions import (
    EmbeddingUnavailableError,
    InvalidConfigurationError,
    StoreUnavailableError,
)
from ..vector_store.embedder import Embedder
from ..vector_store.models import ScoredResult
from ..vector_store.ranker import rank
from ..vector_store.store import VectorStore
from .models import RetrievalResult

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


class QueryPipeline:
    """
    Answers retrieval requests against a populated store.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        max_context_tokens: int = 1024,
        separator: str = CONTEXT_SEPARATOR,
    ):
        self.embedder = embedder
        self.store = store
        self.max_context_tokens = max_context_tokens
        self.separator = separator

    def query(self, text: str, top_k: int = 5) -> list[ScoredResult]:
        """
        Return the ``top_k`` records most similar to ``text``.

        An empty store yields an empty list without ranking.

        Raises:
            InvalidConfigurationError: If ``top_k`` is less than 1.
            ValueError: If ``text`` is empty.
            EmbeddingUnavailableError, StoreUnavailableError: Backend failures.
        """
        if top_k < 1:
            raise InvalidConfigurationError(f"top_k ({top_k}) must be at least 1")

        query_vector = self.embedder.embed(text)

        if not self.store.has_any():
            logger.info("Vector store is empty, skipping retrieval")
            return []

        records = self.store.scan_all()
        results = rank(query_vector, records, top_k)
        logger.debug(
            "Ranked %d records, returning %d (best score %s)",
            len(records), len(results),
            f"{results[0].score:.4f}" if results else "n/a",
        )
        return results

    def retrieve(self, text: str, top_k: int = 5) -> RetrievalResult:
        """
        Search and build a token-budgeted context block.

        Falls back to an empty context (``fallback=True``) when the
        embedding service or the store is unavailable.
        """
        try:
            results = self.query(text, top_k=top_k)
        except (EmbeddingUnavailableError, StoreUnavailableError) as e:
            logger.warning("Retrieval unavailable, continuing without context: %s", e)
            return RetrievalResult(query=text, fallback=True)

        context_text = build_context(results, self.max_context_tokens, self.separator)
        return RetrievalResult(
            query=text,
            results=results,
            context_text=context_text,
            token_count=count_tokens(context_text),
        )


def build_context(
    results: list[ScoredResult],
    max_tokens: int,
    separator: str = CONTEXT_SEPARATOR,
) -> str:
    """
    Join result texts with a separator, best first, within a token budget.

    The first result is always included even if it exceeds the budget.
    """
    if not results:
        return ""
    separator_tokens = count_tokens(separator)
    parts: list[str] = []
    token_count = 0
    for result in results:
        chunk_tokens = count_tokens(result.text)
        separator_cost = separator_tokens if parts else 0
        if token_count + chunk_tokens + separator_cost > max_tokens:
            if not parts:
                parts.append(result.text)
            break
        parts.append(result.text)
        token_count += chunk_tokens + separator_cost
    return separator.join(parts)
