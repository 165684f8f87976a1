"""Tests for book_rag.chunking.sentence_splitter."""

from book_rag.chunking.sentence_splitter import split_sentences


class TestSplitSentences:
    def test_mixed_punctuation(self):
        text = "He left at dawn. Did he return? Yes! He did."
        assert split_sentences(text) == ["He left at dawn.", "Did he return?", "Yes!", "He did."]

    def test_newline_boundaries(self):
        assert split_sentences("First.\nSecond.") == ["First.", "Second."]

    def test_abbreviation_is_split(self):
        # No abbreviation handling: a period followed by space ends a sentence.
        assert split_sentences("Mr. Smith came.") == ["Mr.", "Smith came."]

    def test_strips_outer_whitespace(self):
        assert split_sentences("  One.   Two.  ") == ["One.", "Two."]
