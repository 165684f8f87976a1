"""Tests for book_rag.chunking.token_counter."""

from book_rag.chunking.token_counter import count_tokens


class TestCountTokens:
    def test_empty_string(self):
        assert count_tokens("") == 0

    def test_simple_english(self):
        assert count_tokens("Hello world") >= 2

    def test_longer_text(self):
        text = (
            "A rite of passage marks the transition of a young person into "
            "adulthood, often through a journey away from home."
        )
        assert 15 < count_tokens(text) < 60

    def test_returns_int(self):
        assert isinstance(count_tokens("Test"), int)

    def test_separator_costs_tokens(self):
        assert count_tokens("\n\n---\n\n") >= 1

    def test_uses_openai_encoding(self):
        from book_rag.chunking.token_counter import ENCODING_NAME, _get_encoder

        assert ENCODING_NAME == "cl100k_base"
        assert _get_encoder() is _get_encoder()
