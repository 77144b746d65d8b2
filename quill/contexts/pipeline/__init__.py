"""
Pipeline Context

Responsibilities:
- Sequences generation, sanitization, compilation and repair for a request
- Enforces the page budget through compression rounds
- Reports progress events with ETAs
- Caches finished results by input hash
- Produces an annotated-LaTeX fallback when a request cannot be compiled

Owns: Request state, retry and compression bounds, progress reporting
Never: Edits LaTeX itself (delegates to the repair context)
"""

from quill.contexts.pipeline.cache import ResultCache, cache_key
from quill.contexts.pipeline.exceptions import (
    BackendMisconfigured,
    CompilationFailed,
    NoAutoFixAvailable,
    PageBudgetExceeded,
    PipelineFailure,
)
from quill.contexts.pipeline.orchestrator import (
    FallbackArtifact,
    GenerationResult,
    PipelineState,
    ResumePipeline,
    add_error_note,
    validate_inputs,
)
from quill.contexts.pipeline.progress import (
    CompositeProgressReporter,
    JsonlProgressReporter,
    LoggingProgressReporter,
    NullProgressReporter,
    ProgressEvent,
    RecordingProgressReporter,
    Stage,
    StageAverages,
)

__all__ = [
    # Orchestration
    "ResumePipeline",
    "PipelineState",
    "GenerationResult",
    "FallbackArtifact",
    "add_error_note",
    "validate_inputs",
    # Terminal failures
    "PipelineFailure",
    "CompilationFailed",
    "NoAutoFixAvailable",
    "PageBudgetExceeded",
    "BackendMisconfigured",
    # Progress
    "Stage",
    "ProgressEvent",
    "StageAverages",
    "NullProgressReporter",
    "LoggingProgressReporter",
    "JsonlProgressReporter",
    "RecordingProgressReporter",
    "CompositeProgressReporter",
    # Cache
    "ResultCache",
    "cache_key",
]
