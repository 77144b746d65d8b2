"""
Generation Context

Responsibilities:
- Requests tailored resume LaTeX from the text-generation service
- Requests compression rewrites when a document exceeds the page budget
- Extracts the LaTeX document from free-form model output

Owns: Prompts, model calls, response parsing
Never: Repairs or compiles LaTeX
"""

from quill.contexts.generation.exceptions import GenerationFormatError
from quill.contexts.generation.response_parser import extract_document, require_document
from quill.contexts.generation.writer import ResumeWriter

__all__ = [
    "extract_document",
    "require_document",
    "GenerationFormatError",
    "ResumeWriter",
]
