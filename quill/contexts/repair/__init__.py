"""
Repair Context

Responsibilities:
- Sanitizes generated LaTeX before the first compile (escaping, brace balance,
  command typos, section-styling macros, markdown leakage)
- Maps compiler diagnostics to targeted source fixes
- Provides brace/line scanning primitives shared by both

Owns: Textual LaTeX repair, the diagnostic-to-fix rule table
Never: Compiles documents, rewrites content
"""

from quill.contexts.repair.error_repair import (
    Diagnostic,
    RepairAttempt,
    RepairEngine,
    RepairOutcome,
    attempt_fix,
    parse_diagnostic,
)
from quill.contexts.repair.sanitizer import SanitizeResult, sanitize, sanitize_with_notes

__all__ = [
    # Sanitizer
    "sanitize",
    "sanitize_with_notes",
    "SanitizeResult",
    # Diagnostic-driven repair
    "attempt_fix",
    "parse_diagnostic",
    "Diagnostic",
    "RepairAttempt",
    "RepairEngine",
    "RepairOutcome",
]
