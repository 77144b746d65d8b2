"""
Extracts a complete LaTeX document from free-form model output.
"""

import re
from typing import Optional

from quill.contexts.generation.exceptions import GenerationFormatError
from quill.contexts.repair.latex_patterns import DocumentPatterns

# First fenced block, optionally tagged latex/tex
FENCED_BLOCK = re.compile(r"```(?:latex|tex)?[ \t]*\n?([\s\S]*?)```", re.IGNORECASE)


def extract_document(response_text: Optional[str]) -> Optional[str]:
    """
    Extract a LaTeX document from model output.

    If the text contains a fenced code block, only the first block's content is
    considered; otherwise the whole text. The candidate must contain both
    \\documentclass and \\end{document}.

    Args:
        response_text: Raw model output

    Returns:
        The trimmed document, or None when no complete document is present
    """
    if not isinstance(response_text, str):
        return None

    fenced = FENCED_BLOCK.search(response_text)
    candidate = (fenced.group(1) if fenced else response_text).strip()

    if DocumentPatterns.DOCUMENTCLASS in candidate and DocumentPatterns.END_DOCUMENT in candidate:
        return candidate
    return None


def require_document(response_text: Optional[str]) -> str:
    """
    Extract a LaTeX document or fail the request.

    Raises:
        GenerationFormatError: If no complete document is present
    """
    document = extract_document(response_text)
    if document is None:
        raise GenerationFormatError(
            "Model output does not contain a complete LaTeX document",
            raw_output=response_text if isinstance(response_text, str) else None,
        )
    return document
