"""
Token counting for the context block handed to the chat model.

Chunks are sized in characters, but the generation step has a token limit.
``build_context`` uses ``count_tokens`` to decide how many ranked chunks fit
into ``max_context_tokens``. cl100k_base is the encoding of the OpenAI
embedding and chat models this engine targets by default.
"""

import tiktoken

ENCODING_NAME = "cl100k_base"

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding(ENCODING_NAME)
    return _encoder


def count_tokens(text: str) -> int:
    """Number of ``ENCODING_NAME`` tokens in ``text``; 0 for empty text."""
    if not text:
        return 0
    return len(_get_encoder().encode(text))
