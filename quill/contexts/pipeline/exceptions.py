"""Terminal failures of the compile/repair/compress loop."""

from typing import List, Optional


class PipelineFailure(Exception):
    """
    Base class for failures that end a request with a fallback artifact.

    Attributes:
        message: Error description
        last_latex: Last document the pipeline tried to compile
        description: Everything that was tried, in order
        diagnostic_log: Compiler log of the last failure (empty if none)
    """

    failure_kind = "pipeline_failure"

    def __init__(
        self,
        message: str,
        last_latex: str = "",
        fixes_applied: Optional[List[str]] = None,
        diagnostic_log: str = "",
    ):
        self.message = message
        self.last_latex = last_latex
        self.fixes_applied = list(fixes_applied or [])
        self.diagnostic_log = diagnostic_log or ""

        parts = [message]
        if self.fixes_applied:
            parts.append("Tried: " + "; ".join(self.fixes_applied))
        self.description = "\n".join(parts)

        super().__init__(self.description)


class CompilationFailed(PipelineFailure):
    """Repairs kept changing the document but the retry cap was reached."""

    failure_kind = "compilation_failed"


class NoAutoFixAvailable(PipelineFailure):
    """Compilation failed and no repair rule could change the document."""

    failure_kind = "no_auto_fix"


class PageBudgetExceeded(PipelineFailure):
    """The document still exceeds the page budget after all compression rounds."""

    failure_kind = "page_budget_exceeded"


class BackendMisconfigured(PipelineFailure):
    """No compiler backend could run (missing engine, unreachable service)."""

    failure_kind = "backend_unavailable"
