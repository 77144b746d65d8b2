"""Exceptions raised by the compiler backends."""

from typing import Optional

# Characters of a diagnostic shown in the exception message
MESSAGE_EXCERPT_CHARS = 300


class CompilationError(Exception):
    """
    Raised when a backend ran but the document did not typeset.

    Attributes:
        diagnostic_log: Backend log text used to drive repairs
        raw_error: Short description of the failure (exit status, HTTP status)
    """

    def __init__(self, diagnostic_log: str, raw_error: Optional[str] = None):
        self.diagnostic_log = diagnostic_log or ""
        self.raw_error = raw_error or "LaTeX compilation failed"

        parts = [self.raw_error]
        excerpt = self.diagnostic_log.strip()
        if excerpt:
            if len(excerpt) > MESSAGE_EXCERPT_CHARS:
                excerpt = "..." + excerpt[-MESSAGE_EXCERPT_CHARS:]
            parts.append(f"\nLog tail:\n{excerpt}")

        super().__init__("\n".join(parts))


class BackendUnavailable(Exception):
    """
    Raised when no backend could run at all.

    Covers a missing engine binary and an unreachable remote service. Distinct
    from CompilationError: there is no diagnostic to repair from.
    """

    pass
