"""
Sentence Splitter

Regex-based sentence boundary detection: a sentence ends at ``.``, ``!`` or
``?`` followed by whitespace. Blank fragments are dropped.

Usage:
    from book_rag.chunking.sentence_splitter import split_sentences

    sentences = split_sentences("First one. Second one!")
    # ["First one.", "Second one!"]
"""

import re

_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """
    Split text into sentences.

    Args:
        text: Input text (cleaned or raw).

    Returns:
        List of non-empty, stripped sentences in order.
    """
    if not text or not text.strip():
        return []
    return [
        sentence.strip()
        for sentence in _SENTENCE_BOUNDARY_RE.split(text)
        if sentence.strip()
    ]
