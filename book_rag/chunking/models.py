"""
Data Models for the Chunking Pipeline

Defines:
1. ChunkingConfig - Window size and overlap for the sliding-window segmenter
2. ChunkMetadata - Position of a chunk within the cleaned document
3. Chunk - A single immutable text chunk with metadata
4. ChunkingResult - Complete chunking output for one document

Design Principles:
- Pydantic v2 for validation and serialization
- Offsets always refer to the cleaned text, never the raw input
- Save/load pattern so a chunking run can be inspected offline

Usage:
    config = ChunkingConfig(chunk_size=2000, overlap=400)
    result = TextSegmenter(config).chunk(raw_text, document_id="book")
    result.save("chunks.json")
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..exceptions import InvalidConfigurationError


def validate_window(chunk_size: int, overlap: int) -> None:
    """Raise InvalidConfigurationError unless ``chunk_size > overlap >= 0``."""
    if overlap < 0:
        raise InvalidConfigurationError(
            f"overlap ({overlap}) must not be negative"
        )
    if chunk_size <= overlap:
        raise InvalidConfigurationError(
            f"chunk_size ({chunk_size}) must be greater than overlap ({overlap})"
        )


class ChunkingConfig(BaseModel):
    """
    Configuration for the sliding-window segmenter.

    Sizes are measured in characters of the cleaned text. Defaults match
    the values used for book-length documents.
    """
    chunk_size: int = Field(
        2000,
        description="Window length in characters",
    )
    overlap: int = Field(
        400,
        description="Characters shared by consecutive windows",
    )

    def model_post_init(self, __context: Any) -> None:
        validate_window(self.chunk_size, self.overlap)


class ChunkMetadata(BaseModel):
    """Position of a chunk within the cleaned source text."""
    model_config = ConfigDict(frozen=True)

    chunk_index: int = Field(
        ...,
        description="Sequential index among emitted chunks (0-indexed)",
        ge=0,
    )
    start_char: int = Field(
        ...,
        description="Inclusive window start offset in the cleaned text",
        ge=0,
    )
    end_char: int = Field(
        ...,
        description="Exclusive window end offset in the cleaned text",
    )

    @model_validator(mode="after")
    def _check_span(self) -> "ChunkMetadata":
        if self.end_char <= self.start_char:
            raise ValueError(
                f"end_char ({self.end_char}) must be greater than "
                f"start_char ({self.start_char})"
            )
        return self


class Chunk(BaseModel):
    """
    A single text chunk, ready for embedding.
    """
    model_config = ConfigDict(frozen=True)

    text: str = Field(
        ...,
        description="Trimmed window text",
        min_length=1,
    )
    metadata: ChunkMetadata = Field(
        ...,
        description="Window position within the cleaned document",
    )

    @property
    def chunk_id(self) -> str:
        """Stable record ID derived from the chunk index."""
        return make_chunk_id(self.metadata.chunk_index)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ChunkingResult(BaseModel):
    """
    Complete result of chunking a document.
    """
    document_id: str = Field(
        ...,
        description="Identifier of the source document",
    )
    config: ChunkingConfig = Field(
        ...,
        description="Configuration used for chunking",
    )
    chunks: list[Chunk] = Field(
        default_factory=list,
        description="Emitted chunks in document order",
    )
    cleaned_length: int = Field(
        0,
        description="Length of the cleaned text the offsets refer to",
        ge=0,
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When chunking was performed",
    )

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    def save(self, path: str) -> None:
        """Save chunking result to a JSON file."""
        Path(path).write_text(self.to_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: str) -> "ChunkingResult":
        """Load chunking result from a JSON file."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)


def make_chunk_id(chunk_index: int) -> str:
    return f"chunk_{chunk_index}"
