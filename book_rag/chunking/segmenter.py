"""
Text Segmenter - Sliding-window chunking for the retrieval engine

Takes the raw text of a single document and produces overlapping,
fixed-size character windows with position metadata.

Algorithm:
1. Clean the whole document once (whitespace collapse, trim).
2. Slide a window of ``chunk_size`` characters over the cleaned text.
3. The next window starts ``overlap`` characters before the previous end.
4. Stop as soon as a window reaches the end of the text.
5. Drop windows that are blank after trimming; indices stay contiguous.

Usage:
    from book_rag.chunking import TextSegmenter, ChunkingConfig

    segmenter = TextSegmenter(ChunkingConfig(chunk_size=2000, overlap=400))
    result = segmenter.chunk(raw_text, document_id="book")
"""

import logging
import re
from typing import Iterator, Optional, Sequence, TypeVar

from ..exceptions import InvalidConfigurationError
from .models import Chunk, ChunkingConfig, ChunkingResult, ChunkMetadata, validate_window

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

T = TypeVar("T")


def clean_text(text: str) -> str:
    """
    Normalize extracted document text before segmentation.

    Collapses whitespace runs to a single space, collapses runs of three
    or more newlines to a paragraph break and trims both ends.
    """
    if not text:
        return ""
    cleaned = _WHITESPACE_RE.sub(" ", text)
    cleaned = _EXCESS_NEWLINES_RE.sub("\n\n", cleaned)
    return cleaned.strip()


def segment(text: str, chunk_size: int, overlap: int) -> list[Chunk]:
    """
    Split already-cleaned text into overlapping windows.

    Args:
        text: Cleaned document text.
        chunk_size: Window length in characters.
        overlap: Characters shared by consecutive windows.

    Returns:
        Chunks in document order. ``start_char``/``end_char`` describe the
        untrimmed window; ``text`` is the trimmed window content.

    Raises:
        InvalidConfigurationError: Unless ``chunk_size > overlap >= 0``.
    """
    validate_window(chunk_size, overlap)

    chunks: list[Chunk] = []
    length = len(text)
    start = 0

    while start < length:
        end = min(start + chunk_size, length)
        window = text[start:end].strip()

        if window:
            chunks.append(Chunk(
                text=window,
                metadata=ChunkMetadata(
                    chunk_index=len(chunks),
                    start_char=start,
                    end_char=end,
                ),
            ))

        if end == length:
            break
        start = end - overlap

    return chunks


def iter_batches(items: Sequence[T], batch_size: int) -> Iterator[list[T]]:
    """Yield consecutive groups of at most ``batch_size`` items."""
    if batch_size < 1:
        raise InvalidConfigurationError(
            f"batch_size ({batch_size}) must be at least 1"
        )
    for i in range(0, len(items), batch_size):
        yield list(items[i:i + batch_size])


class TextSegmenter:
    """
    Cleans a document and splits it into overlapping chunks.
    """

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()

    def chunk(self, text: str, document_id: str = "document") -> ChunkingResult:
        """
        Clean and segment a whole document.

        Args:
            text: Raw document text.
            document_id: Identifier stored with the result.

        Returns:
            ChunkingResult with all chunks and the cleaned text length.
        """
        cleaned = clean_text(text)
        chunks = segment(cleaned, self.config.chunk_size, self.config.overlap)

        logger.debug(
            "Segmented %s: %d chars -> %d chunks (size=%d, overlap=%d)",
            document_id, len(cleaned), len(chunks),
            self.config.chunk_size, self.config.overlap,
        )

        return ChunkingResult(
            document_id=document_id,
            config=self.config,
            chunks=chunks,
            cleaned_length=len(cleaned),
        )
