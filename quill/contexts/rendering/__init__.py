"""
Rendering Context

Responsibilities:
- Compiles LaTeX to PDF through the remote service or a local TeX engine
- Chooses the backend by document size and configuration
- Reports page counts read from the compiled PDF
- Surfaces compiler diagnostics for the repair context

Owns: LaTeX compilation, backend selection, PDF page counting
Never: Modifies document content
"""

from quill.contexts.rendering.compiler import CompileResult, LatexCompiler
from quill.contexts.rendering.exceptions import BackendUnavailable, CompilationError

__all__ = [
    "LatexCompiler",
    "CompileResult",
    "CompilationError",
    "BackendUnavailable",
]
