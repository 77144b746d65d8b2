"""
PDF inspection helpers.

Page counts are always taken from the compiled PDF structure, never estimated
from the LaTeX source.
"""

import io
from pathlib import Path
from typing import Optional, Union

from PyPDF2 import PdfReader

PDF_MAGIC = b"%PDF-"


def looks_like_pdf(data: bytes) -> bool:
    """Check for the PDF header within the first kilobyte."""
    return PDF_MAGIC in data[:1024]


def page_count_from_bytes(pdf_bytes: bytes) -> int:
    """
    Count pages in an in-memory PDF.

    Raises:
        ValueError: If the bytes cannot be parsed as a PDF
    """
    if not pdf_bytes or not looks_like_pdf(pdf_bytes):
        raise ValueError("Data does not look like a PDF document")
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        return len(reader.pages)
    except Exception as e:  # PyPDF2 raises a wide range of parse errors
        raise ValueError(f"Unreadable PDF: {e}") from e


def page_count(pdf: Union[Path, bytes]) -> Optional[int]:
    """Get page count from a PDF path or bytes, or None if unreadable."""
    try:
        data = pdf if isinstance(pdf, bytes) else Path(pdf).read_bytes()
        return page_count_from_bytes(data)
    except (ValueError, OSError):
        return None
