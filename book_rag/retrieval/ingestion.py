"""
Ingestion Pipeline - Document -> chunks -> embeddings -> stored records

Runs as an offline batch job. Every run starts by clearing the store, so
the new document fully replaces the previous corpus, and record ids are
derived from the chunk index, so re-running on identical input produces
an identical store.

States:
    IDLE -> CLEARING -> CHUNKING -> (EMBEDDING -> PERSISTING)* -> IDLE
    any error -> FAILED (already persisted batches stay in the store)

Usage:
    pipeline = IngestionPipeline(embedder, store)
    stats = pipeline.ingest(text, chunk_size=2000, overlap=400)
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from ..chunking import ChunkingConfig, TextSegmenter, iter_batches
from ..chunking.models import validate_window
from ..document_loader import load_document
from ..exceptions import InvalidConfigurationError
from ..vector_store.embedder import Embedder
from ..vector_store.models import Record
from ..vector_store.store import VectorStore
from .models import IngestionState, IngestStats

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

DEFAULT_INGEST_BATCH_SIZE = 50


class IngestionPipeline:
    """
    Populates a vector store from the text of a single document.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        batch_size: int = DEFAULT_INGEST_BATCH_SIZE,
    ):
        """
        Args:
            embedder: Embedding client used for every chunk.
            store: Store that receives the records.
            batch_size: Chunks embedded and persisted per step.
        """
        if batch_size < 1:
            raise InvalidConfigurationError(
                f"batch_size ({batch_size}) must be at least 1"
            )
        self.embedder = embedder
        self.store = store
        self.batch_size = batch_size
        self.state = IngestionState.IDLE

    def ingest(
        self,
        document_text: str,
        chunk_size: int,
        overlap: int,
        document_id: str = "document",
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestStats:
        """
        Replace the store contents with the chunks of one document.

        Args:
            document_text: Raw document text (cleaned here).
            chunk_size: Window length in characters.
            overlap: Characters shared by consecutive windows.
            document_id: Stored in each record's metadata.
            progress_callback: Optional callback(current, total, status).

        Returns:
            IngestStats with chunk count and timings.

        Raises:
            InvalidConfigurationError: Before anything is cleared.
            EmbeddingUnavailableError, StoreUnavailableError: Mid-run; the
                batches persisted so far remain.
        """
        validate_window(chunk_size, overlap)

        total_start = time.time()
        embed_time = 0.0
        stored = 0
        batch_count = 0

        try:
            self._transition(IngestionState.CLEARING)
            self.store.clear()

            self._transition(IngestionState.CHUNKING)
            segmenter = TextSegmenter(ChunkingConfig(chunk_size=chunk_size, overlap=overlap))
            chunking_result = segmenter.chunk(document_text, document_id=document_id)
            chunks = chunking_result.chunks
            total = len(chunks)

            logger.info(
                "Ingesting %s: %d chunks in batches of %d",
                document_id, total, self.batch_size,
            )
            if progress_callback:
                progress_callback(0, total, "Chunked")

            for batch in iter_batches(chunks, self.batch_size):
                batch_count += 1

                self._transition(IngestionState.EMBEDDING)
                embed_start = time.time()
                embeddings = self.embedder.embed_batch([c.text for c in batch])
                embed_time += time.time() - embed_start

                self._transition(IngestionState.PERSISTING)
                records = [
                    Record(
                        id=chunk.chunk_id,
                        text=chunk.text,
                        embedding=embedding,
                        metadata={
                            "document_id": document_id,
                            "chunk_index": chunk.metadata.chunk_index,
                            "start_char": chunk.metadata.start_char,
                            "end_char": chunk.metadata.end_char,
                        },
                    )
                    for chunk, embedding in zip(batch, embeddings)
                ]
                self.store.upsert(records)
                stored += len(records)

                logger.debug("Batch %d stored (%d/%d chunks)", batch_count, stored, total)
                if progress_callback:
                    progress_callback(stored, total, f"Stored batch {batch_count}")
        except Exception:
            self._transition(IngestionState.FAILED)
            logger.error(
                "Ingestion of %s failed after %d stored chunks", document_id, stored,
            )
            raise

        self._transition(IngestionState.IDLE)
        total_time = time.time() - total_start

        if progress_callback:
            progress_callback(stored, stored, "Done")
        logger.info("Ingested %s: %d chunks in %.2fs", document_id, stored, total_time)

        return IngestStats(
            document_id=document_id,
            chunk_count=stored,
            batches=batch_count,
            embedding_time_seconds=round(embed_time, 2),
            total_time_seconds=round(total_time, 2),
        )

    def ingest_file(
        self,
        path: str,
        chunk_size: int,
        overlap: int,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestStats:
        """
        Load a PDF or text file and ingest it.

        The document id is the file name without its suffix.
        """
        text = load_document(path)
        return self.ingest(
            text,
            chunk_size=chunk_size,
            overlap=overlap,
            document_id=Path(path).stem,
            progress_callback=progress_callback,
        )

    def _transition(self, state: IngestionState) -> None:
        logger.debug("Ingestion state: %s -> %s", self.state.value, state.value)
        self.state = state
