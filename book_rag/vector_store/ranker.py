"""
Similarity Ranker - Exact cosine ranking over a full scan

Scores every record against the query vector and keeps the top-K.
This is O(N * D) per query with no index; an ANN index would replace
``rank`` behind the same signature if the corpus outgrows a full scan.
"""

import logging
import math
from typing import Sequence

from ..exceptions import DimensionMismatchError, InvalidConfigurationError
from .models import Record, ScoredResult

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity ``dot(a, b) / (|a| * |b|)``.

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(expected=len(a), actual=len(b))

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def rank(
    query: Sequence[float],
    records: Sequence[Record],
    top_k: int,
) -> list[ScoredResult]:
    """
    Rank records by cosine similarity to the query vector.

    Records whose dimension differs from the query are skipped with a
    warning instead of failing the whole call. Equal scores keep their
    scan order.

    Args:
        query: Query embedding.
        records: Records from a full store scan.
        top_k: Maximum number of results.

    Returns:
        Up to ``top_k`` results, best first.

    Raises:
        InvalidConfigurationError: If ``top_k`` is less than 1.
    """
    if top_k < 1:
        raise InvalidConfigurationError(f"top_k ({top_k}) must be at least 1")

    scored: list[tuple[float, Record]] = []
    skipped = 0
    for record in records:
        try:
            score = cosine_similarity(query, record.embedding)
        except DimensionMismatchError:
            skipped += 1
            logger.warning(
                "Skipping record %s: %d dimensions, query has %d",
                record.id, record.dimensions, len(query),
            )
            continue
        scored.append((score, record))

    if skipped:
        logger.warning("Excluded %d of %d records from ranking", skipped, len(records))

    # sorted() is stable, so ties keep scan order.
    scored = sorted(scored, key=lambda item: item[0], reverse=True)

    return [
        ScoredResult(
            id=record.id,
            text=record.text,
            metadata=record.metadata,
            score=score,
        )
        for score, record in scored[:top_k]
    ]
