"""
Document loading for ingestion.

Reads the selectable text of a PDF (via PyMuPDF) or a plain text file.
No cleaning happens here; the segmenter cleans the whole document once.
"""

from __future__ import annotations

from pathlib import Path
import logging

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md"}


def load_document(path: str | Path) -> str:
    """
    Return the raw text of a document.

    Raises:
        FileNotFoundError: If the path does not exist.
        ValueError: For unsupported file types.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return _load_pdf(path)
    if suffix in TEXT_SUFFIXES:
        text = path.read_text(encoding="utf-8")
        logger.info("Loaded %s (%d characters)", path.name, len(text))
        return text
    raise ValueError(f"Unsupported document type '{suffix}': {path}")


def _load_pdf(path: Path) -> str:
    with fitz.open(str(path)) as doc:
        pages = [page.get_text("text") for page in doc]
    text = "\n".join(pages)
    logger.info("Extracted %d pages from %s (%d characters)", len(pages), path.name, len(text))
    return text
