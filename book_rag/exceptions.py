"""
Custom Exceptions for the Retrieval Engine.

Exception Hierarchy:
    RetrievalEngineError (base)
    ├── InvalidConfigurationError
    ├── MissingCredentialError
    ├── EmbeddingUnavailableError
    ├── StoreUnavailableError
    └── DimensionMismatchError

Configuration and credential errors are permanent and surface immediately.
Embedding and store unavailability are retryable by the caller; the engine
itself never retries.

Usage:
    from book_rag.exceptions import EmbeddingUnavailableError, is_retryable

    try:
        engine.ingest(text, chunk_size=2000, overlap=400)
    except EmbeddingUnavailableError as e:
        if is_retryable(e):
            ...
"""

from __future__ import annotations

from typing import Optional


# =============================================================================
# BASE EXCEPTION
# =============================================================================


class RetrievalEngineError(Exception):
    """
    Base exception for all retrieval engine errors.

    Attributes:
        message: Human-readable error description
        details: Additional technical details (optional)
    """

    def __init__(
        self,
        message: str = "A retrieval engine error occurred",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message = f"{message} | Details: {details}"

        super().__init__(full_message)


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class InvalidConfigurationError(RetrievalEngineError):
    """Raised for invalid chunking, batching or ranking parameters."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        details: Optional[str] = None,
    ):
        super().__init__(message, details)


class MissingCredentialError(RetrievalEngineError):
    """
    Raised when the embedding backend requires a credential that is not set.

    Attributes:
        variable: Name of the environment variable that should hold it
    """

    def __init__(self, variable: str = "OPENAI_API_KEY"):
        self.variable = variable
        super().__init__(
            message=f"{variable} is not set in environment variables",
        )


# =============================================================================
# BACKEND ERRORS
# =============================================================================


class EmbeddingUnavailableError(RetrievalEngineError):
    """
    Raised when the embedding capability is unreachable or returns an error.

    Attributes:
        original_error: The underlying SDK exception
        status_code: HTTP status code if available
    """

    def __init__(
        self,
        message: str = "Embedding service unavailable",
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        self.original_error = original_error
        self.status_code = status_code

        if status_code:
            message = f"{message} (HTTP {status_code})"
        details = str(original_error) if original_error else None

        super().__init__(message, details)


class StoreUnavailableError(RetrievalEngineError):
    """
    Raised when the vector store cannot be opened or a transaction fails.

    Attributes:
        original_error: The underlying database exception
    """

    def __init__(
        self,
        message: str = "Vector store unavailable",
        original_error: Optional[Exception] = None,
    ):
        self.original_error = original_error
        details = str(original_error) if original_error else None
        super().__init__(message, details)


class DimensionMismatchError(RetrievalEngineError):
    """
    Raised when two vectors that must be compared have different lengths.

    Attributes:
        expected: Dimension of the reference vector
        actual: Dimension of the offending vector
        record_id: ID of the offending record, if known
    """

    def __init__(
        self,
        expected: int,
        actual: int,
        record_id: Optional[str] = None,
    ):
        self.expected = expected
        self.actual = actual
        self.record_id = record_id

        message = f"Embedding dimension mismatch: expected {expected}, got {actual}"
        if record_id:
            message = f"{message} [{record_id}]"
        super().__init__(message)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """
    Check if an error is potentially recoverable by retrying the operation.

    Returns True for embedding and store unavailability. Configuration,
    credential and dimension errors will fail the same way again.
    """
    return isinstance(error, (EmbeddingUnavailableError, StoreUnavailableError))


def format_error_chain(error: Exception) -> str:
    """
    Format an exception and its chain for logging.

    Returns a multi-line string showing the error hierarchy.
    """
    lines = []
    current = error
    depth = 0

    while current is not None:
        prefix = "  " * depth + ("└─ " if depth > 0 else "")
        lines.append(f"{prefix}{type(current).__name__}: {current}")

        if getattr(current, "original_error", None):
            current = current.original_error
            depth += 1
        elif current.__cause__:
            current = current.__cause__
            depth += 1
        else:
            break

    return "\n".join(lines)
