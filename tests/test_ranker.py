"""Tests for book_rag.vector_store.ranker — cosine similarity and top-K."""

import logging
import math

import pytest

from book_rag.exceptions import DimensionMismatchError, InvalidConfigurationError
from book_rag.vector_store.models import Record
from book_rag.vector_store.ranker import cosine_similarity, rank


def _record(record_id: str, embedding: list[float]) -> Record:
    return Record(id=record_id, text=f"Text of {record_id}", embedding=embedding)


class TestCosineSimilarity:
    def test_identical(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_scaled_is_identical(self):
        assert cosine_similarity([1.0, 2.0], [3.0, 6.0]) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_known_angle(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 1.0]) == pytest.approx(1 / math.sqrt(2))

    def test_zero_vector(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(DimensionMismatchError) as exc_info:
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])
        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 3


class TestRank:
    def test_orders_best_first(self):
        records = [
            _record("far", [0.0, 1.0]),
            _record("near", [1.0, 0.1]),
            _record("exact", [2.0, 0.0]),
        ]
        results = rank([1.0, 0.0], records, top_k=3)
        assert [r.id for r in results] == ["exact", "near", "far"]
        assert results[0].score == pytest.approx(1.0)
        assert results[0].distance == pytest.approx(0.0)

    def test_top_k_limits(self):
        records = [_record(f"r{i}", [1.0, float(i)]) for i in range(10)]
        results = rank([1.0, 0.0], records, top_k=3)
        assert [r.id for r in results] == ["r0", "r1", "r2"]

    def test_fewer_records_than_k(self):
        results = rank([1.0, 0.0], [_record("only", [1.0, 1.0])], top_k=5)
        assert len(results) == 1

    def test_ties_keep_scan_order(self):
        records = [
            _record("a", [1.0, 1.0]),
            _record("b", [1.0, 1.0]),
            _record("c", [1.0, 1.0]),
        ]
        results = rank([1.0, 1.0], records, top_k=2)
        assert [r.id for r in results] == ["a", "b"]

    def test_mismatched_records_skipped(self, caplog):
        records = [
            _record("good", [1.0, 0.0]),
            _record("bad", [1.0, 0.0, 0.0]),
        ]
        with caplog.at_level(logging.WARNING, logger="book_rag.vector_store.ranker"):
            results = rank([1.0, 0.0], records, top_k=5)

        assert [r.id for r in results] == ["good"]
        assert "bad" in caplog.text

    def test_empty_records(self):
        assert rank([1.0, 0.0], [], top_k=5) == []

    def test_carries_text_and_metadata(self):
        record = Record(id="chunk_0", text="Hello", embedding=[1.0], metadata={"chunk_index": 0})
        result = rank([1.0], [record], top_k=1)[0]
        assert result.text == "Hello"
        assert result.metadata == {"chunk_index": 0}

    @pytest.mark.parametrize("top_k", [0, -1])
    def test_invalid_top_k(self, top_k):
        with pytest.raises(InvalidConfigurationError):
            rank([1.0], [_record("a", [1.0])], top_k=top_k)
