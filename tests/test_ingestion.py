"""Tests for book_rag.retrieval.ingestion — IngestionPipeline."""

from unittest.mock import MagicMock

import pytest

from book_rag.chunking import clean_text, segment
from book_rag.exceptions import (
    EmbeddingUnavailableError,
    InvalidConfigurationError,
)
from book_rag.retrieval.ingestion import IngestionPipeline
from book_rag.retrieval.models import IngestionState
from book_rag.vector_store.models import Record


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def pipeline(stub_embedder, memory_store):
    return IngestionPipeline(stub_embedder, memory_store, batch_size=3)


def _snapshot(store) -> dict:
    return {
        r.id: (r.text, tuple(r.embedding), tuple(sorted(r.metadata.items())))
        for r in store.scan_all()
    }


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestIngest:
    def test_stores_every_chunk(self, pipeline, memory_store, sample_document):
        stats = pipeline.ingest(sample_document, chunk_size=40, overlap=10, document_id="book")

        expected = segment(clean_text(sample_document), 40, 10)
        assert stats.chunk_count == len(expected)
        assert stats.batches == -(-len(expected) // 3)
        assert memory_store.count() == len(expected)

        records = {r.id: r for r in memory_store.scan_all()}
        for chunk in expected:
            record = records[f"chunk_{chunk.metadata.chunk_index}"]
            assert record.text == chunk.text
            assert record.metadata == {
                "document_id": "book",
                "chunk_index": chunk.metadata.chunk_index,
                "start_char": chunk.metadata.start_char,
                "end_char": chunk.metadata.end_char,
            }

    def test_embeddings_come_from_embedder(self, pipeline, stub_embedder, memory_store):
        pipeline.ingest("AAAA BBBB. CCCC DDDD.", chunk_size=10, overlap=2)

        records = {r.id: r for r in memory_store.scan_all()}
        assert records["chunk_1"].text == "B. CCCC DD"
        assert records["chunk_1"].embedding == stub_embedder.embed("B. CCCC DD")

    def test_batches_sent_to_embedder(self, pipeline, stub_embedder):
        pipeline.ingest("x" * 70, chunk_size=10, overlap=0)
        assert [len(call) for call in stub_embedder.calls] == [3, 3, 1]

    def test_replaces_previous_corpus(self, pipeline, memory_store):
        pipeline.ingest("First document. " * 20, chunk_size=50, overlap=10)
        pipeline.ingest("Tiny.", chunk_size=50, overlap=10)

        records = memory_store.scan_all()
        assert [r.id for r in records] == ["chunk_0"]
        assert records[0].text == "Tiny."

    def test_idempotent(self, pipeline, memory_store, sample_document):
        pipeline.ingest(sample_document, chunk_size=30, overlap=5)
        first = _snapshot(memory_store)

        pipeline.ingest(sample_document, chunk_size=30, overlap=5)
        assert _snapshot(memory_store) == first

    def test_empty_document(self, pipeline, memory_store):
        memory_store.upsert([Record(id="old", text="old", embedding=[1.0] * 16)])

        stats = pipeline.ingest("  \n\n  ", chunk_size=100, overlap=10)

        assert stats.chunk_count == 0
        assert stats.batches == 0
        assert memory_store.count() == 0
        assert pipeline.state == IngestionState.IDLE

    def test_progress_callback(self, pipeline):
        progress = MagicMock()
        pipeline.ingest("x" * 50, chunk_size=10, overlap=0, progress_callback=progress)

        statuses = [c.args[2] for c in progress.call_args_list]
        assert statuses == ["Chunked", "Stored batch 1", "Stored batch 2", "Done"]
        progress.assert_any_call(3, 5, "Stored batch 1")
        progress.assert_called_with(5, 5, "Done")


class TestIngestStates:
    def test_state_sequence(self, stub_embedder, memory_store):
        pipeline = IngestionPipeline(stub_embedder, memory_store, batch_size=2)
        seen = []
        original = pipeline._transition

        def record_transition(state):
            seen.append(state)
            original(state)

        pipeline._transition = record_transition
        assert pipeline.state == IngestionState.IDLE

        pipeline.ingest("x" * 40, chunk_size=10, overlap=0)

        assert seen == [
            IngestionState.CLEARING,
            IngestionState.CHUNKING,
            IngestionState.EMBEDDING,
            IngestionState.PERSISTING,
            IngestionState.EMBEDDING,
            IngestionState.PERSISTING,
            IngestionState.IDLE,
        ]
        assert pipeline.state == IngestionState.IDLE

    def test_clear_called_once_per_run(self, stub_embedder):
        store = MagicMock()
        pipeline = IngestionPipeline(stub_embedder, store, batch_size=2)

        pipeline.ingest("x" * 60, chunk_size=10, overlap=0)

        store.clear.assert_called_once()
        assert store.upsert.call_count == 3


class TestIngestFailures:
    def test_invalid_window_leaves_store_untouched(self, pipeline, memory_store):
        pipeline.ingest("Keep me around.", chunk_size=50, overlap=5)

        with pytest.raises(InvalidConfigurationError):
            pipeline.ingest("New text", chunk_size=10, overlap=10)

        assert memory_store.count() == 1
        assert pipeline.state == IngestionState.IDLE

    def test_embedding_failure_keeps_persisted_batches(self, embedder_factory, memory_store):
        embedder = embedder_factory(fail_on_call=2)
        pipeline = IngestionPipeline(embedder, memory_store, batch_size=3)

        with pytest.raises(EmbeddingUnavailableError):
            pipeline.ingest("x" * 100, chunk_size=10, overlap=0)

        assert pipeline.state == IngestionState.FAILED
        assert {r.id for r in memory_store.scan_all()} == {"chunk_0", "chunk_1", "chunk_2"}

    def test_rerun_after_failure_recovers(self, embedder_factory, memory_store):
        embedder = embedder_factory(fail_on_call=1)
        pipeline = IngestionPipeline(embedder, memory_store, batch_size=3)
        with pytest.raises(EmbeddingUnavailableError):
            pipeline.ingest("x" * 50, chunk_size=10, overlap=0)

        stats = pipeline.ingest("x" * 50, chunk_size=10, overlap=0)
        assert stats.chunk_count == 5
        assert memory_store.count() == 5
        assert pipeline.state == IngestionState.IDLE

    def test_invalid_batch_size(self, stub_embedder, memory_store):
        with pytest.raises(InvalidConfigurationError):
            IngestionPipeline(stub_embedder, memory_store, batch_size=0)


class TestIngestFile:
    def test_text_file(self, pipeline, memory_store, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("Line one.\n\nLine two.", encoding="utf-8")

        stats = pipeline.ingest_file(str(path), chunk_size=100, overlap=10)

        assert stats.document_id == "notes"
        record = memory_store.scan_all()[0]
        assert record.text == "Line one. Line two."
        assert record.metadata["document_id"] == "notes"

    def test_missing_file(self, pipeline, tmp_path):
        with pytest.raises(FileNotFoundError):
            pipeline.ingest_file(str(tmp_path / "missing.txt"), chunk_size=100, overlap=10)
