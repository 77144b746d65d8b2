"""
Integration tests against a real local TeX engine.

Skipped when pdflatex is not installed.
"""

import shutil

import pytest

from quill.contexts.pipeline import NullProgressReporter, ResumePipeline
from quill.contexts.rendering import CompilationError, LatexCompiler
from quill.contexts.repair import RepairEngine, parse_diagnostic
from tests.helpers import wrap

pytestmark = [
    pytest.mark.integration,
    pytest.mark.latex,
    pytest.mark.skipif(shutil.which("pdflatex") is None, reason="pdflatex not installed"),
]


@pytest.fixture
def compiler():
    return LatexCompiler(backend="local", engine="pdflatex")


class TestLocalCompilation:
    """Compile real documents with pdflatex."""

    def test_minimal_document(self, compiler):
        result = compiler.compile(wrap("\nHello, world.\n"))

        assert result.backend == "local"
        assert result.page_count == 1
        assert result.pdf_bytes.startswith(b"%PDF-")

    def test_two_pages(self, compiler):
        result = compiler.compile(wrap("\nFirst page.\n\\newpage\nSecond page.\n"))
        assert result.page_count == 2

    def test_undefined_command_diagnostic(self, compiler):
        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(wrap("\n\\capitalisewords{hello}\n"))

        diagnostic = parse_diagnostic(exc_info.value.diagnostic_log)
        assert diagnostic.undefined_command == "capitalisewords"
        assert diagnostic.line_number == 3

    def test_pipeline_repairs_undefined_command(self, compiler):
        pipeline = ResumePipeline(
            writer=object(),
            compiler=compiler,
            repair_engine=RepairEngine(),
            reporter=NullProgressReporter(),
        )

        result, state = pipeline.compile_document(wrap("\n\\capitalisewords{hello}\n"))

        assert result.page_count == 1
        assert "\\capitalisewords" not in state.current_document
        assert state.current_document == wrap("\nhello\n")
        assert len(state.fixes_applied) == 1
