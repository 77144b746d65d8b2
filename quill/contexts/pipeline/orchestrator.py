"""
Resume pipeline orchestration.

Sequences generation, sanitization, the compile/repair loop and the page-count
guard for one request:

    raw model output -> extract document -> sanitize
        -> compile <-> repair (bounded retries)
        -> page count within budget?  yes: PDF
                                      no:  compress, sanitize, compile again (bounded rounds)

Terminal failures of the loop become a FallbackArtifact: the last LaTeX source
annotated with an error note, so the user can fix it by hand.
"""

import time
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

from quill.contexts.generation import GenerationFormatError, ResumeWriter, require_document
from quill.contexts.pipeline.cache import ResultCache, cache_key
from quill.contexts.pipeline.exceptions import (
    BackendMisconfigured,
    CompilationFailed,
    NoAutoFixAvailable,
    PageBudgetExceeded,
    PipelineFailure,
)
from quill.contexts.pipeline.logger import (
    _log_debug,
    _log_info,
    _log_success,
    _log_warning,
    log_pipeline_failure,
)
from quill.contexts.pipeline.progress import (
    COMPILE,
    LLM,
    REFINE,
    NullProgressReporter,
    ProgressReporter,
    ProgressTracker,
    Stage,
    StageAverages,
)
from quill.contexts.rendering import (
    BackendUnavailable,
    CompilationError,
    CompileResult,
    LatexCompiler,
)
from quill.contexts.repair import RepairAttempt, RepairEngine, sanitize_with_notes
from quill.contexts.repair.logger import log_sanitize_notes
from quill.utils.timestamp import format_duration, now_exact

PAGE_BUDGET = 2
MAX_RETRIES = 2
MAX_PAGE_ATTEMPTS = 2

MIN_JOB_DESCRIPTION_CHARS = 50
MIN_MASTER_RESUME_CHARS = 100

ERROR_NOTE_MARKER = "% === quill error note ==="
ERROR_NOTE_END = "% === end note ==="
ERROR_NOTE_MAX_CHARS = 2000


@dataclass
class PipelineState:
    """
    Mutable state of one request.

    Attributes:
        current_document: Document the loop is working on
        attempt_count: Compiles run so far
        fixes_applied: Descriptions of every sanitization and repair, in order
        repair_attempts: The same, with the document each one produced
        compression_rounds: Compressions requested from the writer
    """

    current_document: str
    attempt_count: int = 0
    fixes_applied: List[str] = field(default_factory=list)
    repair_attempts: List[RepairAttempt] = field(default_factory=list)
    compression_rounds: int = 0

    def record_fix(self, description: str, document_after: str) -> None:
        self.fixes_applied.append(description)
        self.repair_attempts.append(RepairAttempt(description, document_after))
        self.current_document = document_after


@dataclass
class GenerationResult:
    """A resume that compiled within the page budget."""

    pdf_bytes: bytes
    page_count: int
    latex: str
    fixes_applied: List[str] = field(default_factory=list)
    backend: Optional[str] = None
    from_cache: bool = False

    compilation_failed = False


@dataclass
class FallbackArtifact:
    """
    Degraded result: annotated LaTeX for manual repair.

    Attributes:
        latex: Last attempted document, prefixed with an error note
        diagnostic: Compiler log of the last failure, or the failure description
        failure_kind: Which terminal failure ended the request
        fixes_applied: Every fix tried before giving up
    """

    latex: str
    diagnostic: str
    failure_kind: str
    fixes_applied: List[str] = field(default_factory=list)

    compilation_failed = True


def validate_inputs(job_description: Optional[str], master_resume: Optional[str]) -> None:
    """
    Reject inputs too short to produce a resume from.

    Raises:
        ValueError: If either input is missing or too short
    """
    if not job_description or len(job_description.strip()) < MIN_JOB_DESCRIPTION_CHARS:
        raise ValueError("Job description is too short or missing.")
    if not master_resume or len(master_resume.strip()) < MIN_MASTER_RESUME_CHARS:
        raise ValueError("Master resume is missing or too short.")


def add_error_note(latex: Optional[str], note_lines: List[str]) -> str:
    """
    Prefix a document with a comment block describing why it failed.

    A document that already carries a note is returned unchanged.
    """
    if not latex:
        latex = ""
    if ERROR_NOTE_MARKER in latex:
        return latex

    flattened = [
        line.strip()
        for note in note_lines
        for line in str(note).splitlines()
        if line.strip()
    ]
    block = [ERROR_NOTE_MARKER] + [f"% {line}" for line in flattened] + [ERROR_NOTE_END, ""]
    return "\n".join(block) + latex


class ResumePipeline:
    """
    Generates a resume PDF from a job description and a master resume.

    Collaborators are injected; defaults are built from environment
    configuration. Stage averages and the result cache are shared by every
    request made through the same pipeline; PipelineState never is.
    """

    def __init__(
        self,
        writer: Optional[ResumeWriter] = None,
        compiler: Optional[LatexCompiler] = None,
        repair_engine: Optional[RepairEngine] = None,
        cache: Optional[ResultCache] = None,
        reporter: Optional[ProgressReporter] = None,
        averages: Optional[StageAverages] = None,
        page_budget: int = PAGE_BUDGET,
        max_retries: int = MAX_RETRIES,
        max_page_attempts: int = MAX_PAGE_ATTEMPTS,
    ):
        self.writer = writer if writer is not None else ResumeWriter()
        self.compiler = compiler if compiler is not None else LatexCompiler()
        self.repair_engine = repair_engine if repair_engine is not None else RepairEngine()
        self.cache = cache
        self.reporter = reporter if reporter is not None else NullProgressReporter()
        self.averages = averages if averages is not None else StageAverages()
        self.page_budget = page_budget
        self.max_retries = max_retries
        self.max_page_attempts = max_page_attempts

    def tracker(self, request_id: Optional[str] = None) -> ProgressTracker:
        return ProgressTracker(request_id, self.reporter, self.averages)

    def generate(
        self, job_description: str, master_resume: str, request_id: Optional[str] = None
    ) -> Union[GenerationResult, FallbackArtifact]:
        """
        Run the full pipeline for one request.

        Args:
            job_description: Job posting text
            master_resume: The candidate's complete resume text
            request_id: Correlation token for progress events

        Returns:
            GenerationResult on success, FallbackArtifact when the document could
            not be compiled within the page budget

        Raises:
            GenerationFormatError: If the model output holds no LaTeX document
        """
        started_at = time.time()
        tracker = self.tracker(request_id)
        tracker.emit(Stage.RECEIVED, "Request received", [LLM, COMPILE])

        key = cache_key(job_description, master_resume)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                _log_info(f"Cache hit for request {request_id}")
                tracker.emit(Stage.DONE, "Resume ready (cached)")
                return replace(cached, from_cache=True)

        tracker.emit(Stage.LLM_START, "Calling AI model...", [LLM, COMPILE])
        llm_start = time.time()
        raw_output = self.writer.write_resume(job_description, master_resume)
        self.averages.update(LLM, time.time() - llm_start)
        tracker.emit(Stage.LLM_DONE, "AI response received", [COMPILE])

        try:
            latex = require_document(raw_output)
        except GenerationFormatError:
            tracker.emit(Stage.ERROR, "Model did not return valid LaTeX.")
            raise

        state = PipelineState(current_document=latex)
        tracker.emit(Stage.COMPILE_START, "Compiling LaTeX to PDF...", [COMPILE])
        try:
            compiled = self.compile_with_page_guard(latex, state, tracker)
        except PipelineFailure as failure:
            log_pipeline_failure(failure)
            tracker.emit(Stage.ERROR, "LaTeX compilation failed. Returning .tex for manual fixes.")
            return self.fallback(failure)

        result = GenerationResult(
            pdf_bytes=compiled.pdf_bytes,
            page_count=compiled.page_count,
            latex=state.current_document,
            fixes_applied=list(state.fixes_applied),
            backend=compiled.backend,
        )
        if self.cache is not None:
            self.cache.put(key, result)

        elapsed = format_duration(time.time() - started_at)
        _log_success(f"Resume ready: {result.page_count} page(s) in {elapsed}")
        tracker.emit(Stage.DONE, f"Resume ready (took {elapsed})")
        return result

    def compile_with_page_guard(
        self,
        latex: str,
        state: Optional[PipelineState] = None,
        tracker: Optional[ProgressTracker] = None,
    ) -> CompileResult:
        """
        Compile a document and enforce the page budget.

        Each round sanitizes, compiles (with repairs) and measures. A round over
        budget asks the writer to compress the document for the next round.

        Raises:
            PageBudgetExceeded: Still over budget after max_page_attempts rounds
            CompilationFailed, NoAutoFixAvailable, BackendMisconfigured: From the
                compile/repair loop
        """
        state = state if state is not None else PipelineState(current_document=latex)
        tracker = tracker if tracker is not None else self.tracker()
        state.current_document = latex

        for page_attempt in range(1, self.max_page_attempts + 1):
            tracker.emit(
                Stage.COMPILE_PASS,
                f"Compiling PDF (pass {page_attempt}/{self.max_page_attempts})...",
                [COMPILE],
            )
            self.sanitize(state)
            result = self.compile_with_repairs(state, tracker)
            _log_info(f"PDF page count: {result.page_count}")

            if result.page_count <= self.page_budget:
                return result

            if page_attempt == self.max_page_attempts:
                raise PageBudgetExceeded(
                    f"PDF still exceeds {self.page_budget} pages after "
                    f"{self.max_page_attempts} attempts ({result.page_count} pages).",
                    last_latex=state.current_document,
                    fixes_applied=state.fixes_applied,
                )

            self.compress(state, result.page_count, tracker)

        # max_page_attempts < 1
        raise PageBudgetExceeded(
            "No compile attempts allowed.",
            last_latex=state.current_document,
            fixes_applied=state.fixes_applied,
        )

    def compile_document(
        self, latex: str, request_id: Optional[str] = None
    ) -> Tuple[CompileResult, PipelineState]:
        """Sanitize and compile with repairs, without enforcing the page budget."""
        state = PipelineState(current_document=latex)
        tracker = self.tracker(request_id)
        self.sanitize(state)
        return self.compile_with_repairs(state, tracker), state

    def sanitize(self, state: PipelineState) -> None:
        result = sanitize_with_notes(state.current_document)
        log_sanitize_notes(result.notes)
        for note in result.notes:
            state.record_fix(note, result.latex)
        state.current_document = result.latex

    def compile_with_repairs(
        self, state: PipelineState, tracker: ProgressTracker
    ) -> CompileResult:
        """
        Compile state.current_document, repairing from diagnostics between attempts.

        At most max_retries repaired recompiles follow the first compile.

        Raises:
            CompilationFailed: Still failing after max_retries repairs
            NoAutoFixAvailable: No rule could change the failing document
            BackendMisconfigured: No backend could run
        """
        retries = 0
        while True:
            compile_start = time.time()
            state.attempt_count += 1
            try:
                result = self.compiler.compile(state.current_document)
            except BackendUnavailable as e:
                raise BackendMisconfigured(
                    str(e), last_latex=state.current_document, fixes_applied=state.fixes_applied
                ) from e
            except CompilationError as e:
                error = e
            else:
                self.averages.update(COMPILE, time.time() - compile_start)
                return result

            if retries >= self.max_retries:
                raise CompilationFailed(
                    f"LaTeX compilation failed after {retries} automatic fix(es): "
                    f"{error.raw_error}",
                    last_latex=state.current_document,
                    fixes_applied=state.fixes_applied,
                    diagnostic_log=error.diagnostic_log,
                )

            outcome = self.repair_engine.attempt_fix(state.current_document, error.diagnostic_log)
            if not outcome.fixed:
                raise NoAutoFixAvailable(
                    f"LaTeX compilation failed: {error.raw_error}. {outcome.description}",
                    last_latex=state.current_document,
                    fixes_applied=state.fixes_applied,
                    diagnostic_log=error.diagnostic_log,
                )

            state.record_fix(outcome.description, outcome.document)
            retries += 1
            tracker.emit(
                Stage.COMPILE_PASS,
                f"Applied automatic fix, recompiling (retry {retries}/{self.max_retries})...",
                [COMPILE],
            )

    def compress(self, state: PipelineState, page_count: int, tracker: ProgressTracker) -> None:
        """Replace the document with the writer's compressed rewrite."""
        _log_warning(f"{page_count} pages exceeds budget of {self.page_budget}; compressing")
        tracker.emit(
            Stage.REFINE_START,
            f"Compressing content to fit {self.page_budget} pages...",
            [REFINE, COMPILE],
        )
        refine_start = time.time()
        try:
            compressed = self.writer.compress(state.current_document, page_count, self.page_budget)
        except Exception as e:
            reason = e.message if isinstance(e, GenerationFormatError) else str(e)
            raise PageBudgetExceeded(
                f"PDF exceeds {self.page_budget} pages and compression failed: {reason}",
                last_latex=state.current_document,
                fixes_applied=state.fixes_applied,
            ) from e
        self.averages.update(REFINE, time.time() - refine_start)

        state.compression_rounds += 1
        state.current_document = compressed
        _log_debug(f"Compression round {state.compression_rounds} complete")
        tracker.emit(Stage.REFINE_DONE, "Compression complete. Recompiling...", [COMPILE])

    def fallback(self, failure: PipelineFailure) -> FallbackArtifact:
        """Build the annotated-LaTeX artifact for a terminal failure."""
        note_lines = [
            "AUTOMATIC ERROR NOTE (quill)",
            f"Timestamp: {now_exact()}",
            f"Compilation error: {failure.message}"[:ERROR_NOTE_MAX_CHARS],
        ]
        if failure.fixes_applied:
            note_lines.append(f"Fixes applied: {' '.join(failure.fixes_applied)}")
        return FallbackArtifact(
            latex=add_error_note(failure.last_latex, note_lines),
            diagnostic=failure.diagnostic_log or failure.description,
            failure_kind=failure.failure_kind,
            fixes_applied=list(failure.fixes_applied),
        )
