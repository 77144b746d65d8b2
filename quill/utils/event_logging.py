"""
Pipeline event logging utilities (Tier 2 logging).

Appends machine-readable pipeline events to a JSON Lines file so that progress
and outcomes of generation requests can be replayed or tailed independently of
the detailed loguru logs.

Usage:
    from quill.utils.event_logging import log_pipeline_event

    log_pipeline_event(
        event_type="progress",
        request_id="req-42",
        source="pipeline",
        stage="compile_pass",
        percent=75,
    )
"""

import json
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from quill.utils.timestamp import now_exact

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))
PIPELINE_EVENTS_FILE = Path(
    os.getenv("PIPELINE_EVENTS_FILE", str(LOGS_PATH / "pipeline_events.log"))
)


def log_pipeline_event(
    event_type: str,
    request_id: Optional[str],
    source: str,
    events_file: Optional[Path] = None,
    **extra_fields,
) -> None:
    """
    Append an event to the pipeline event log in JSON Lines format.

    Args:
        event_type: Type of event (e.g., "progress", "generation_completed")
        request_id: Correlation token of the request (may be None)
        source: Event source (e.g., "pipeline", "cli")
        events_file: Override for the target file (default: PIPELINE_EVENTS_FILE)
        **extra_fields: Additional event-specific fields
    """
    target = Path(events_file) if events_file is not None else PIPELINE_EVENTS_FILE
    target.parent.mkdir(parents=True, exist_ok=True)

    event = {
        "timestamp": now_exact(),
        "event_type": event_type,
        "request_id": request_id,
        "source": source,
        **extra_fields,
    }

    with open(target, "a", encoding="utf-8") as f:
        f.write(json.dumps(event) + "\n")


def get_recent_events(
    n: int = 10,
    request_id: Optional[str] = None,
    event_type: Optional[str] = None,
    events_file: Optional[Path] = None,
) -> list[dict]:
    """
    Get the last n events from the pipeline log, optionally filtered.

    Args:
        n: Number of recent events to return (default: 10)
        request_id: Filter to only events for this request (optional)
        event_type: Filter to only events of this type (optional)
        events_file: Override for the source file (default: PIPELINE_EVENTS_FILE)

    Returns:
        List of event dicts (most recent last)
    """
    source = Path(events_file) if events_file is not None else PIPELINE_EVENTS_FILE
    if not source.exists():
        return []

    events = []
    with open(source, "r", encoding="utf-8") as f:
        for line in f:
            try:
                events.append(json.loads(line.strip()))
            except json.JSONDecodeError:
                # Skip malformed lines
                continue

    if request_id:
        events = [e for e in events if e.get("request_id") == request_id]

    if event_type:
        events = [e for e in events if e.get("event_type") == event_type]

    return events[-n:] if len(events) > n else events
