"""Tests for book_rag.cli."""

from unittest.mock import patch

import pytest

from book_rag import RAGConfig, RetrievalEngine
from book_rag.cli import main, preview
from book_rag.exceptions import MissingCredentialError
from book_rag.vector_store.store import SQLiteVectorStore


@pytest.fixture
def engine(stub_embedder, tmp_path):
    store = SQLiteVectorStore(str(tmp_path / "vectors.db"))
    config = RAGConfig(chunk_size=50, chunk_overlap=10, top_k=2)
    return RetrievalEngine(stub_embedder, store, config)


@pytest.fixture
def run(engine):
    """Run the CLI against the stub engine without touching .env files."""
    with patch("book_rag.cli.load_env_files"), \
            patch("book_rag.cli.RetrievalEngine.from_config", return_value=engine):
        yield main


class TestCli:
    def test_ingest(self, run, tmp_path, capsys):
        path = tmp_path / "story.txt"
        path.write_text("The boy walked into the forest. " * 10, encoding="utf-8")

        assert run(["ingest", str(path)]) == 0
        out = capsys.readouterr().out
        assert "Document:        story" in out
        assert "Done" in out

    def test_ingest_missing_file(self, run, tmp_path, capsys):
        assert run(["ingest", str(tmp_path / "missing.pdf")]) == 1
        assert "Document not found" in capsys.readouterr().out

    def test_ingest_invalid_window(self, run, tmp_path, capsys):
        path = tmp_path / "story.txt"
        path.write_text("Some text.", encoding="utf-8")
        assert run(["ingest", str(path), "--chunk-size", "10", "--overlap", "10"]) == 1
        assert "ERROR" in capsys.readouterr().out

    def test_query_empty_store(self, run, capsys):
        assert run(["query", "anything"]) == 0
        assert "No results" in capsys.readouterr().out

    def test_query_after_ingest(self, run, engine, tmp_path, capsys):
        engine.ingest("AAAA BBBB. CCCC DDDD.", chunk_size=10, overlap=2)

        assert run(["query", "B. CCCC DD", "-k", "1"]) == 0
        out = capsys.readouterr().out
        assert "Record: chunk_1" in out
        assert "score: 1.0000" in out

    def test_status(self, run, capsys):
        assert run(["status"]) == 0
        assert "store_ok: OK" in capsys.readouterr().out

    def test_configuration_error(self, capsys):
        with patch("book_rag.cli.load_env_files"), \
                patch("book_rag.cli.RetrievalEngine.from_config",
                      side_effect=MissingCredentialError()):
            assert main(["status"]) == 1
        assert "OPENAI_API_KEY is not set" in capsys.readouterr().out


class TestPreview:
    def test_keeps_whole_sentences(self):
        text = "First sentence here. Second one follows. " + "Third is long. " * 20
        shown = preview(text, limit=45)
        assert shown == "First sentence here. Second one follows. ..."

    def test_short_text_unchanged(self):
        assert preview("Only one sentence.") == "Only one sentence."

    def test_long_first_sentence_cut(self):
        text = "word " * 100
        shown = preview(text, limit=20)
        assert shown == "word word word word..."
