"""Custom exceptions for the generation context."""

from typing import Optional

# Characters of raw model output kept for diagnosis
RAW_EXCERPT_CHARS = 500


class GenerationFormatError(Exception):
    """
    Raised when model output contains no usable LaTeX document.

    Terminal for the request: the compiler is never invoked.

    Attributes:
        message: Error description
        raw_excerpt: First characters of the raw model output
    """

    def __init__(self, message: str, raw_output: Optional[str] = None):
        self.message = message
        self.raw_excerpt = (raw_output or "")[:RAW_EXCERPT_CHARS]

        parts = [message]
        if self.raw_excerpt:
            parts.append(f"\nRaw output:\n{self.raw_excerpt}")

        super().__init__("\n".join(parts))
