#!/usr/bin/env python3
"""
Retrieval engine command line.

Prerequisites:
    OPENAI_API_KEY in the environment, .env or .env.local
    (or EMBEDDING_PROVIDER=ollama with a running Ollama instance)

Usage:
    python -m book_rag.cli ingest path/to/book.pdf
    python -m book_rag.cli ingest notes.txt --chunk-size 1000 --overlap 200
    python -m book_rag.cli query "What does the book say about fathers?" -k 3
    python -m book_rag.cli status
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .chunking import split_sentences
from .config import RAGConfig, load_env_files
from .exceptions import RetrievalEngineError, format_error_chain
from .logging_config import get_logger, setup_logging
from .retrieval import RetrievalEngine

logger = get_logger("cli")

PREVIEW_CHARS = 150


def progress(current: int, total: int, status: str) -> None:
    """Print progress updates."""
    percent = (current / total * 100) if total > 0 else 100.0
    print(f"  [{current}/{total}] {percent:5.1f}% - {status}")


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Leading whole sentences of ``text`` within ``limit`` characters."""
    kept: list[str] = []
    length = 0
    for sentence in split_sentences(text):
        if length + len(sentence) > limit:
            break
        kept.append(sentence)
        length += len(sentence) + 1
    if not kept:
        return text[:limit].rstrip() + "..."
    shown = " ".join(kept)
    return shown if len(shown) >= len(text.strip()) else shown + " ..."


def cmd_ingest(engine: RetrievalEngine, args: argparse.Namespace) -> int:
    path = Path(args.path)
    if not path.exists():
        print(f"Document not found: {path}")
        return 1

    print(f"\n=== Ingestion: {path} ===")
    stats = engine.ingest_file(
        str(path),
        chunk_size=args.chunk_size,
        overlap=args.overlap,
        progress_callback=progress,
    )

    print(f"\n  Document:        {stats.document_id}")
    print(f"  Chunks:          {stats.chunk_count}")
    print(f"  Batches:         {stats.batches}")
    print(f"  Embedding time:  {stats.embedding_time_seconds}s")
    print(f"  Total time:      {stats.total_time_seconds}s")
    return 0


def cmd_query(engine: RetrievalEngine, args: argparse.Namespace) -> int:
    print(f"\n=== Query: \"{args.text}\" (top {args.top_k or engine.config.top_k}) ===")

    results = engine.query(args.text, top_k=args.top_k)
    if not results:
        print("  No results. Ingest a document first:")
        print("  python -m book_rag.cli ingest book.pdf")
        return 0

    for i, r in enumerate(results, 1):
        print(f"\n  --- Hit {i} (score: {r.score:.4f}, distance: {r.distance:.4f}) ---")
        print(f"  Record: {r.id}")
        print(f"  Chars:  {r.metadata.get('start_char', '?')}-{r.metadata.get('end_char', '?')}")
        print(f"  Text:   {preview(r.text)}")
    return 0


def cmd_status(engine: RetrievalEngine, args: argparse.Namespace) -> int:
    print("\n=== Health Check ===")
    health = engine.health_check()
    for key, value in health.items():
        status = "OK" if value is True else ("FAILED" if value is False else value)
        print(f"  {key}: {status}")
    return 0 if health.get("store_ok") and health.get("healthy") else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Ingest a document and query its passages",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log output to this file",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Replace the corpus with a document")
    ingest.add_argument("path", help="PDF, .txt or .md file")
    ingest.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Window length in characters (default: CHUNK_SIZE or 2000)",
    )
    ingest.add_argument(
        "--overlap",
        type=int,
        default=None,
        help="Characters shared by consecutive chunks (default: CHUNK_OVERLAP or 400)",
    )
    ingest.set_defaults(handler=cmd_ingest)

    query = subparsers.add_parser("query", help="Show the top passages for a question")
    query.add_argument("text", help="Query text")
    query.add_argument(
        "--top-k", "-k",
        type=int,
        default=None,
        help="Number of results (default: RETRIEVAL_TOP_K or 5)",
    )
    query.set_defaults(handler=cmd_query)

    status = subparsers.add_parser("status", help="Check store and embedding backend")
    status.set_defaults(handler=cmd_status)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_env_files(Path.cwd())
    setup_logging(
        logging.DEBUG if args.verbose else os.environ.get("LOG_LEVEL", "INFO"),
        log_file=args.log_file,
    )

    try:
        with RetrievalEngine.from_config(RAGConfig.from_env()) as engine:
            return args.handler(engine, args)
    except (RetrievalEngineError, ValueError) as e:
        logger.debug(format_error_chain(e))
        print(f"\nERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
