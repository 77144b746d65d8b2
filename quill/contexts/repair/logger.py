"""
Repair context logger.

Provides logging interface for repair context with automatic [repair] prefix.
All repair modules should import from this module, not from loguru directly.
"""

from typing import List

from loguru import logger

CONTEXT_PREFIX = "[repair]"


def _log_info(message: str) -> None:
    """Log info message with [repair] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [repair] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [repair] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [repair] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_sanitize_notes(notes: List[str]) -> None:
    """Log what the sanitizer changed, one line per pass."""
    if not notes:
        _log_debug("Sanitizer made no changes.")
        return
    _log_info(f"Sanitizer applied {len(notes)} fix(es):")
    for note in notes:
        _log_info(f"  - {note}")


def log_repair_outcome(outcome) -> None:
    """
    Log the result of a diagnostic-driven repair.

    Args:
        outcome: RepairOutcome from attempt_fix()
    """
    if outcome.fixed:
        _log_success(f"Applied {', '.join(outcome.rules)}: {outcome.description}")
    else:
        _log_warning(outcome.description)
