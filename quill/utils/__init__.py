"""
Shared utilities for QUILL.

Common functionality used across contexts:
- Logging setup and pipeline event log
- LLM providers
- PDF inspection
- Timestamps
"""

from quill.utils.pdf_processing import page_count, page_count_from_bytes
from quill.utils.timestamp import now, now_exact, today

__all__ = ["page_count", "page_count_from_bytes", "now", "now_exact", "today"]
