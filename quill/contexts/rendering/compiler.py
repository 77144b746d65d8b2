"""
LaTeX Compilation Module

Compiles an in-memory LaTeX document to PDF bytes, either through a remote
compile service (small documents) or a local TeX engine.

Backend choice:
- Remote when the source is at most REMOTE_MAX_CHARS and LATEX_BACKEND is not "local"
- Local otherwise, and whenever the remote service answers 414 (URI too long)
"""

import os
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests
from dotenv import load_dotenv

from quill.contexts.rendering.exceptions import BackendUnavailable, CompilationError
from quill.contexts.rendering.logger import (
    _log_debug,
    _log_warning,
    log_compilation_result,
    log_compilation_start,
)
from quill.utils.pdf_processing import page_count_from_bytes

load_dotenv()

LATEX_BACKEND = os.getenv("LATEX_BACKEND", "auto").lower()
LATEX_COMPILER = os.getenv("LATEX_COMPILER", "pdflatex")
REMOTE_COMPILER_URL = os.getenv("REMOTE_COMPILER_URL", "https://latexonline.cc/compile")
REMOTE_MAX_CHARS = int(os.getenv("REMOTE_MAX_CHARS", "6000"))
REMOTE_COMPILE_TIMEOUT_S = float(os.getenv("REMOTE_COMPILE_TIMEOUT_S", "60"))
LOCAL_COMPILE_TIMEOUT_S = float(os.getenv("LOCAL_COMPILE_TIMEOUT_S", "30"))
OUTPUT_CAP_BYTES = int(os.getenv("OUTPUT_CAP_BYTES", str(10 * 1024 * 1024)))

TEMP_DIR_PREFIX = "quill-tex-"
SOURCE_NAME = "main.tex"
ENGINE_FLAGS = ["-interaction=nonstopmode", "-halt-on-error", "-file-line-error"]

# Lines from the end of main.log kept as the diagnostic
LOG_TAIL_LINES = 40

REMOTE = "remote"
LOCAL = "local"


@dataclass
class CompileResult:
    """
    Result of a successful compilation.

    Attributes:
        pdf_bytes: The typeset PDF
        page_count: Number of pages, read from the PDF itself
        backend: Backend that produced it ("remote" or "local")
    """

    pdf_bytes: bytes
    page_count: int
    backend: str


def tail_lines(text: str, n: int = LOG_TAIL_LINES) -> str:
    """Return the last n lines of text."""
    return "\n".join(text.strip().splitlines()[-n:])


class LatexCompiler:
    """
    Compiler adapter over the remote service and the local TeX engine.

    Settings default to the module-level environment configuration; pass them
    explicitly to override per instance.
    """

    def __init__(
        self,
        backend: str = LATEX_BACKEND,
        engine: str = LATEX_COMPILER,
        remote_url: str = REMOTE_COMPILER_URL,
        remote_max_chars: int = REMOTE_MAX_CHARS,
        remote_timeout: float = REMOTE_COMPILE_TIMEOUT_S,
        local_timeout: float = LOCAL_COMPILE_TIMEOUT_S,
        output_cap_bytes: int = OUTPUT_CAP_BYTES,
        verbose: bool = False,
    ):
        self.backend = backend.lower()
        self.engine = engine
        self.remote_url = remote_url
        self.remote_max_chars = remote_max_chars
        self.remote_timeout = remote_timeout
        self.local_timeout = local_timeout
        self.output_cap_bytes = output_cap_bytes
        self.verbose = verbose

    def select_backend(self, latex: str) -> str:
        """Pick the backend for a document of this size."""
        if self.backend != LOCAL and len(latex) <= self.remote_max_chars:
            return REMOTE
        return LOCAL

    def compile(self, latex: str) -> CompileResult:
        """
        Compile a LaTeX document to PDF.

        Args:
            latex: Complete LaTeX source

        Returns:
            CompileResult with PDF bytes and page count

        Raises:
            CompilationError: The document failed to typeset (diagnostic attached)
            BackendUnavailable: No backend could run
        """
        backend = self.select_backend(latex)
        if backend == REMOTE:
            result = self._timed(REMOTE, self._compile_remote, latex)
            if result is not None:
                return result
            _log_warning("Remote compile rejected (414). Falling back to local compiler...")
        else:
            _log_debug("Skipping remote compiler (document too large or local preferred)")

        return self._timed(LOCAL, self._compile_local, latex)

    def _timed(self, backend: str, operation, latex: str) -> Optional[CompileResult]:
        log_compilation_start(backend, len(latex))
        start_time = time.time()
        try:
            result = operation(latex)
        except CompilationError as e:
            log_compilation_result(backend, time.time() - start_time, error=e, verbose=self.verbose)
            raise
        if result is not None:
            log_compilation_result(backend, time.time() - start_time, result=result)
        return result

    def _compile_remote(self, latex: str) -> Optional[CompileResult]:
        """
        Compile through the remote service.

        Returns:
            CompileResult, or None when the service rejects the request as too long
        """
        try:
            response = requests.get(
                self.remote_url, params={"text": latex}, timeout=self.remote_timeout
            )
        except requests.RequestException as e:
            raise BackendUnavailable(f"Remote compiler unreachable: {e}") from e

        if response.status_code == 414:
            return None
        if response.status_code >= 500:
            raise BackendUnavailable(
                f"Remote compiler error {response.status_code}: {response.text[:200]}"
            )
        if response.status_code != 200:
            raise CompilationError(
                diagnostic_log=response.text,
                raw_error=f"Remote compilation failed: HTTP {response.status_code}",
            )

        return self._build_result(response.content, REMOTE, response.text[:2000])

    def _compile_local(self, latex: str) -> CompileResult:
        """Compile in a fresh temporary directory that is always removed afterwards."""
        with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX) as tmp:
            work_dir = Path(tmp)
            (work_dir / SOURCE_NAME).write_text(latex, encoding="utf-8")
            output_path = work_dir / "engine_output.txt"

            cmd = [self.engine, *ENGINE_FLAGS, SOURCE_NAME]
            _log_debug(f"Running {' '.join(cmd)} in {work_dir}")
            try:
                with open(output_path, "wb") as output:
                    completed = subprocess.run(
                        cmd,
                        cwd=work_dir,
                        stdin=subprocess.DEVNULL,
                        stdout=output,
                        stderr=subprocess.STDOUT,
                        timeout=self.local_timeout,
                    )
            except FileNotFoundError as e:
                raise BackendUnavailable(
                    f"LaTeX engine '{self.engine}' not found. Install a TeX distribution "
                    "or use the remote compiler."
                ) from e
            except subprocess.TimeoutExpired:
                raise CompilationError(
                    diagnostic_log=self._diagnostic(work_dir, output_path),
                    raw_error=f"{self.engine} timed out after {self.local_timeout:g}s",
                )

            pdf_path = work_dir / "main.pdf"
            if completed.returncode != 0 or not pdf_path.exists():
                raise CompilationError(
                    diagnostic_log=self._diagnostic(work_dir, output_path),
                    raw_error=f"{self.engine} exited with status {completed.returncode}",
                )

            pdf_bytes = pdf_path.read_bytes()
            return self._build_result(pdf_bytes, LOCAL, self._diagnostic(work_dir, output_path))

    def _read_output(self, output_path: Path) -> str:
        """Read engine console output, keeping only the last output_cap_bytes."""
        if not output_path.exists():
            return ""
        with open(output_path, "rb") as f:
            f.seek(0, os.SEEK_END)
            size = f.tell()
            f.seek(max(0, size - self.output_cap_bytes))
            return f.read().decode("utf-8", errors="replace")

    def _diagnostic(self, work_dir: Path, output_path: Path) -> str:
        """Last lines of main.log, or of the console output when no log was written."""
        log_file = work_dir / "main.log"
        if log_file.exists():
            # TeX engines write logs in latin-1 (font metadata contains non-UTF-8)
            return tail_lines(log_file.read_text(encoding="latin-1"))
        return tail_lines(self._read_output(output_path))

    @staticmethod
    def _build_result(pdf_bytes: bytes, backend: str, context: str) -> CompileResult:
        try:
            pages = page_count_from_bytes(pdf_bytes)
        except ValueError as e:
            raise CompilationError(
                diagnostic_log=context,
                raw_error=f"{backend} backend returned an unreadable PDF: {e}",
            ) from e
        return CompileResult(pdf_bytes=pdf_bytes, page_count=pages, backend=backend)
