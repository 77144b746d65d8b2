"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[render]"


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_compilation_start(backend: str, source_chars: int) -> None:
    """Log start of compilation with context."""
    _log_info(f"Compiling with {backend} backend ({source_chars} chars)")


def log_compilation_result(
    backend: str,
    elapsed_time: float,
    result=None,  # CompileResult
    error=None,  # CompilationError
    verbose: bool = False,
) -> None:
    """
    Log compilation result with diagnostics.

    Args:
        backend: Backend that ran ("remote" or "local")
        elapsed_time: Time taken to compile
        result: CompileResult on success
        error: CompilationError on failure
        verbose: Log the full diagnostic on failure (default: False)
    """
    if result is not None:
        _log_success(
            f"Compilation succeeded on {backend}: {result.page_count} page(s) "
            f"({elapsed_time:.2f}s)"
        )
        return

    _log_error(f"Compilation failed on {backend} ({elapsed_time:.2f}s)")
    if error is None:
        return
    _log_error(f"  {error.raw_error}")

    # Use opt(raw=True) to keep the multi-line log readable
    if error.diagnostic_log:
        log_text = error.diagnostic_log if verbose else error.diagnostic_log[-2000:]
        logger.opt(raw=True).debug(
            f"\n{'=' * 80}\nLATEX DIAGNOSTIC:\n{'=' * 80}\n{log_text}\n"
        )
