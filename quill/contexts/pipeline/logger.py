"""
Pipeline context logger.

Provides logging interface for pipeline context with automatic [pipeline] prefix.
All pipeline modules should import from this module, not from utils.logger directly.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from quill.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[pipeline]"


def setup_pipeline_logger(log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Setup logger for pipeline runs.

    Args:
        log_dir: Directory for this run's log file (None = console only)

    Returns:
        Path to log file, or None when logging to console only
    """
    return _setup_logger(
        context_name="pipeline",
        log_dir=log_dir,
        extra_provenance={
            "LaTeX backend": os.getenv("LATEX_BACKEND", "auto"),
            "LaTeX compiler": os.getenv("LATEX_COMPILER", "pdflatex"),
            "LLM provider": os.getenv("LLM_PROVIDER", "anthropic"),
        },
    )


# Wrapper functions with automatic [pipeline] prefix


def _log_info(message: str) -> None:
    """Log info message with [pipeline] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [pipeline] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [pipeline] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [pipeline] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [pipeline] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_pipeline_failure(failure) -> None:
    """
    Log a terminal pipeline failure.

    Args:
        failure: PipelineFailure raised by the compile loop
    """
    _log_error(f"{failure.failure_kind}: {failure.message}")
    for i, fix in enumerate(failure.fixes_applied, 1):
        _log_debug(f"  Fix {i}: {fix}")
