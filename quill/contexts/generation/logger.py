"""
Generation context logger.

Provides logging interface for generation context with automatic [generate] prefix.
All generation modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[generate]"


def _log_info(message: str) -> None:
    """Log info message with [generate] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [generate] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [generate] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_llm_response(response, elapsed_time: float) -> None:
    """
    Log an LLM round trip.

    Args:
        response: LLMResponse from the provider
        elapsed_time: Seconds spent waiting for the response
    """
    _log_success(f"{response.model} responded in {elapsed_time:.1f}s")
    _log_debug(f"  Tokens: {response.input_tokens} in / {response.output_tokens} out")
