from enum import Enum

from pydantic import BaseModel, Field

from ..vector_store.models import ScoredResult


class IngestionState(str, Enum):
    IDLE = "idle"
    CLEARING = "clearing"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    PERSISTING = "persisting"
    FAILED = "failed"


class IngestStats(BaseModel):
    """Statistics from a document ingestion run."""
    document_id: str = Field(
        ...,
        description="ID of the ingested document",
    )
    chunk_count: int = Field(
        0,
        description="Number of chunks embedded and stored",
    )
    batches: int = Field(
        0,
        description="Number of embed-and-persist batches",
    )
    embedding_time_seconds: float = Field(
        0.0,
        description="Time spent generating embeddings",
    )
    total_time_seconds: float = Field(
        0.0,
        description="Total ingestion time",
    )


class RetrievalResult(BaseModel):
    """
    Ranked results plus the context block handed to the generation step.
    """
    query: str
    results: list[ScoredResult] = Field(default_factory=list)
    context_text: str = ""
    token_count: int = 0
    fallback: bool = Field(
        False,
        description="True when retrieval failed and the context is empty",
    )
