"""Timestamp helpers for log directories, output files and progress events."""

from datetime import datetime, timezone


def now() -> str:
    """Filesystem-safe local timestamp, e.g. '20251114_123456'."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def today() -> str:
    """Local date, e.g. '2025-11-14'."""
    return datetime.now().strftime("%Y-%m-%d")


def now_exact() -> str:
    """UTC ISO 8601 timestamp with milliseconds, e.g. '2025-11-14T12:34:56.789Z'."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_duration(seconds: float) -> str:
    """
    Format a duration in compact form.

    Examples:
        format_duration(42)   # "42s"
        format_duration(95)   # "1m 35s"
    """
    seconds = max(0, int(round(seconds)))
    minutes, secs = divmod(seconds, 60)
    if minutes == 0:
        return f"{secs}s"
    return f"{minutes}m {secs}s"
