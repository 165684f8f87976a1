"""
Data Models for the Vector Store

Defines:
1. Record - A persisted unit: id, text, embedding and open metadata
2. ScoredResult - A single ranked hit returned to callers

Design Principles:
- Pydantic v2 for validation (consistent with the chunking models)
- Metadata is an open string-keyed mapping, not a fixed schema
- ``score`` (cosine similarity) is the ranking field; ``distance`` is
  derived from it and never used for ordering
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, computed_field


class Record(BaseModel):
    """A single stored chunk with its embedding."""
    id: str = Field(
        ...,
        description="Unique record ID (format: chunk_{index})",
        min_length=1,
    )
    text: str = Field(
        ...,
        description="Chunk text",
        min_length=1,
    )
    embedding: list[float] = Field(
        ...,
        description="Embedding vector, same length for every record in a store",
        min_length=1,
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Provenance fields (chunk_index, start_char, ...)",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the record was created",
    )

    @property
    def dimensions(self) -> int:
        return len(self.embedding)


class ScoredResult(BaseModel):
    """A single ranked result."""
    id: str = Field(
        ...,
        description="ID of the matching record",
    )
    text: str = Field(
        ...,
        description="Text content of the matching record",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata",
    )
    score: float = Field(
        ...,
        description="Cosine similarity (1 = identical, -1 = opposite)",
    )

    @computed_field
    @property
    def distance(self) -> float:
        """Convenience transform: ``1 - score``."""
        return 1.0 - self.score
