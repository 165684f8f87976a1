"""
Chunking Module - Sliding-window character chunking for retrieval

Cleans a document once and splits it into overlapping fixed-size windows
whose offsets refer to the cleaned text.

Quick Start:
    from book_rag.chunking import TextSegmenter, ChunkingConfig

    segmenter = TextSegmenter(ChunkingConfig(chunk_size=2000, overlap=400))
    result = segmenter.chunk(raw_text, document_id="book")
    result.save("chunks.json")
"""

from .models import (
    Chunk,
    ChunkingConfig,
    ChunkingResult,
    ChunkMetadata,
    make_chunk_id,
)
from .segmenter import TextSegmenter, clean_text, iter_batches, segment
from .sentence_splitter import split_sentences
from .token_counter import count_tokens

__all__ = [
    "TextSegmenter",
    "Chunk",
    "ChunkingConfig",
    "ChunkingResult",
    "ChunkMetadata",
    "make_chunk_id",
    "clean_text",
    "segment",
    "iter_batches",
    "split_sentences",
    "count_tokens",
]
