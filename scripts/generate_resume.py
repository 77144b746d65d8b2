#!/usr/bin/env python3
"""
Resume Generation CLI

Generates a tailored two-page resume PDF, and exposes the repair and compile
stages on their own for hand-written or previously failed LaTeX.

Commands:
    generate - Job description + master resume -> PDF (or annotated .tex on failure)
    repair   - Sanitize a .tex file and report what changed
    compile  - Compile a .tex file with automatic repairs (no compression)
    events   - Show recent pipeline events

Examples:\n

    generate_resume.py generate job.txt master_resume.txt

    generate_resume.py generate job.txt master_resume.txt --request-id acme-42

    generate_resume.py repair outs/results/2025-11-14/resume-failed.tex

    generate_resume.py compile resume.tex --local

    generate_resume.py events --request-id acme-42
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from quill.contexts.generation import GenerationFormatError
from quill.contexts.pipeline import (
    CompositeProgressReporter,
    JsonlProgressReporter,
    LoggingProgressReporter,
    PipelineFailure,
    ResumePipeline,
    validate_inputs,
)
from quill.contexts.pipeline.logger import setup_pipeline_logger
from quill.contexts.rendering import LatexCompiler
from quill.contexts.repair import sanitize_with_notes
from quill.utils.event_logging import get_recent_events
from quill.utils.timestamp import now, today

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))
RESULTS_PATH = Path(os.getenv("RESULTS_PATH", "outs/results"))


app = typer.Typer(
    help="Generate, repair and compile LaTeX resumes within a two-page budget",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _read_text(path: Path) -> str:
    if not path.exists():
        typer.secho(f"Error: File not found: {path}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


def _results_dir() -> Path:
    results_dir = RESULTS_PATH / today()
    results_dir.mkdir(parents=True, exist_ok=True)
    return results_dir


def _echo_fixes(fixes) -> None:
    if fixes:
        typer.echo("\nFixes applied:")
        for fix in fixes:
            typer.echo(f"  - {fix}")


@app.command("generate")
def generate_command(
    job_file: Annotated[Path, typer.Argument(help="Text file with the job description")],
    master_resume_file: Annotated[Path, typer.Argument(help="Text file with the master resume")],
    output_name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Output file stem (default: resume-<timestamp>)"),
    ] = None,
    request_id: Annotated[
        Optional[str],
        typer.Option("--request-id", "-r", help="Correlation id for progress events"),
    ] = None,
    local: Annotated[
        bool,
        typer.Option("--local", help="Always compile with the local TeX engine"),
    ] = False,
):
    """
    Generate a tailored resume PDF.

    On success the PDF is written under RESULTS_PATH/YYYY-MM-DD/. When the
    LaTeX cannot be compiled within two pages, the last attempt is written as
    a .tex file with an error note at the top.
    """
    job_description = _read_text(job_file)
    master_resume = _read_text(master_resume_file)
    try:
        validate_inputs(job_description, master_resume)
    except ValueError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    timestamp = now()
    setup_pipeline_logger(LOGS_PATH / f"generate_{timestamp}")
    stem = output_name or f"resume-{timestamp}"

    pipeline = ResumePipeline(
        compiler=LatexCompiler(backend="local") if local else None,
        reporter=CompositeProgressReporter(LoggingProgressReporter(), JsonlProgressReporter()),
    )

    try:
        result = pipeline.generate(job_description, master_resume, request_id=request_id)
    except GenerationFormatError as e:
        typer.secho(f"\n✗ {e.message}", fg=typer.colors.RED, bold=True, err=True)
        if e.raw_excerpt:
            typer.echo(f"\nRaw output (first {len(e.raw_excerpt)} chars):\n{e.raw_excerpt}")
        raise typer.Exit(code=1)

    results_dir = _results_dir()
    if result.compilation_failed:
        tex_path = results_dir / f"{stem}-failed.tex"
        tex_path.write_text(result.latex, encoding="utf-8")
        typer.secho(
            f"\n✗ Compilation failed ({result.failure_kind})", fg=typer.colors.RED, bold=True
        )
        _echo_fixes(result.fixes_applied)
        typer.echo(f"\n  LaTeX with error note: {tex_path}\n")
        raise typer.Exit(code=1)

    pdf_path = results_dir / f"{stem}.pdf"
    pdf_path.write_bytes(result.pdf_bytes)
    (results_dir / f"{stem}.tex").write_text(result.latex, encoding="utf-8")
    typer.secho(
        f"\n✓ Resume ready: {result.page_count} page(s)", fg=typer.colors.GREEN, bold=True
    )
    _echo_fixes(result.fixes_applied)
    typer.echo(f"\n  PDF: {pdf_path}\n")


@app.command("repair")
def repair_command(
    tex_file: Annotated[Path, typer.Argument(help="LaTeX file to sanitize")],
    in_place: Annotated[
        bool,
        typer.Option("--in-place", "-i", help="Overwrite the input file"),
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Where to write the sanitized file"),
    ] = None,
):
    """
    Sanitize a LaTeX file (escaping, brace balance, typos, styling macros, markdown).

    Prints the sanitized document to stdout unless --in-place or --output is given.
    """
    result = sanitize_with_notes(_read_text(tex_file))

    if not result.changed:
        typer.secho("✓ No changes needed", fg=typer.colors.GREEN, err=True)
    else:
        typer.secho(f"Applied {len(result.notes)} fix(es):", fg=typer.colors.BLUE, err=True)
        for note in result.notes:
            typer.echo(f"  - {note}", err=True)

    target = tex_file if in_place else output
    if target is None:
        typer.echo(result.latex)
    else:
        target.write_text(result.latex, encoding="utf-8")
        typer.echo(f"Wrote {target}", err=True)


@app.command("compile")
def compile_command(
    tex_file: Annotated[Path, typer.Argument(help="LaTeX file to compile")],
    local: Annotated[
        bool,
        typer.Option("--local", help="Always compile with the local TeX engine"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log the full compiler diagnostic on failure"),
    ] = False,
):
    """
    Compile a LaTeX file to PDF, applying automatic repairs between attempts.

    The page budget is reported but not enforced. The PDF is written under
    RESULTS_PATH/YYYY-MM-DD/.
    """
    latex = _read_text(tex_file)
    setup_pipeline_logger(LOGS_PATH / f"compile_{now()}")

    compiler = LatexCompiler(backend="local" if local else "auto", verbose=verbose)
    pipeline = ResumePipeline(compiler=compiler, reporter=LoggingProgressReporter())

    try:
        result, state = pipeline.compile_document(latex)
    except PipelineFailure as failure:
        typer.secho(f"\n✗ {failure.message}", fg=typer.colors.RED, bold=True, err=True)
        _echo_fixes(failure.fixes_applied)
        raise typer.Exit(code=1)

    pdf_path = _results_dir() / f"{tex_file.stem}.pdf"
    pdf_path.write_bytes(result.pdf_bytes)
    within_budget = result.page_count <= pipeline.page_budget
    colour = typer.colors.GREEN if within_budget else typer.colors.YELLOW
    typer.secho(
        f"\n✓ Compiled on {result.backend}: {result.page_count} page(s)", fg=colour, bold=True
    )
    _echo_fixes(state.fixes_applied)
    typer.echo(f"\n  PDF: {pdf_path}\n")


@app.command("events")
def events_command(
    count: Annotated[int, typer.Option("--count", "-n", help="Number of events")] = 20,
    request_id: Annotated[
        Optional[str],
        typer.Option("--request-id", "-r", help="Only events for this request"),
    ] = None,
):
    """Show the most recent pipeline events."""
    events = get_recent_events(n=count, request_id=request_id)
    if not events:
        typer.echo("No events found.")
        return
    for event in events:
        stage = event.get("stage", "")
        percent = event.get("percent", "")
        message = event.get("message", "")
        typer.echo(
            f"{event['timestamp']}  {event.get('request_id') or '-':<12} "
            f"{event['event_type']:<10} {stage:<14} {percent!s:>4} {message}"
        )


if __name__ == "__main__":
    app()
