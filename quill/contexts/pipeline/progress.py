"""
Progress events and ETA estimation.

Each pipeline transition emits a ProgressEvent to a reporter. ETAs are sums of
exponentially smoothed durations of the stages still ahead.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from quill.contexts.pipeline.logger import _log_debug, _log_info
from quill.utils.event_logging import log_pipeline_event
from quill.utils.timestamp import now_exact


class Stage(str, Enum):
    RECEIVED = "received"
    LLM_START = "llm_start"
    LLM_DONE = "llm_done"
    COMPILE_START = "compile_start"
    COMPILE_PASS = "compile_pass"
    REFINE_START = "refine_start"
    REFINE_DONE = "refine_done"
    ERROR = "error"
    DONE = "done"


# Percent-complete reported at each stage
STAGE_PERCENT: Dict[Stage, int] = {
    Stage.RECEIVED: 5,
    Stage.LLM_START: 15,
    Stage.LLM_DONE: 60,
    Stage.REFINE_START: 65,
    Stage.REFINE_DONE: 70,
    Stage.COMPILE_START: 75,
    Stage.COMPILE_PASS: 75,
    Stage.ERROR: 100,
    Stage.DONE: 100,
}

# Timed phases, with initial duration guesses in seconds
LLM = "llm"
REFINE = "refine"
COMPILE = "compile"
INITIAL_AVERAGES = {LLM: 60.0, REFINE: 20.0, COMPILE: 8.0}
SMOOTHING = 0.3


@dataclass
class ProgressEvent:
    """One pipeline transition, as delivered to the progress transport."""

    stage: Stage
    percent: int
    message: str
    eta_seconds: Optional[int] = None
    timestamp: str = field(default_factory=now_exact)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["stage"] = self.stage.value
        return data


class StageAverages:
    """
    Exponentially smoothed stage durations.

    new_average = old_average * (1 - SMOOTHING) + observed * SMOOTHING
    """

    def __init__(self, initial: Optional[Dict[str, float]] = None, smoothing: float = SMOOTHING):
        self.averages = dict(INITIAL_AVERAGES if initial is None else initial)
        self.smoothing = smoothing

    def update(self, phase: str, duration_s: float) -> None:
        """Fold an observed duration into the average (non-positive durations are ignored)."""
        if duration_s is None or duration_s <= 0:
            return
        previous = self.averages.get(phase, duration_s)
        self.averages[phase] = previous * (1 - self.smoothing) + duration_s * self.smoothing

    def estimate(self, phases: Iterable[str]) -> int:
        """Seconds expected for the given phases, rounded, never negative."""
        return max(0, round(sum(self.averages.get(phase, 0.0) for phase in phases)))


class ProgressReporter(ABC):
    """Base reporter: receives every event of a request."""

    @abstractmethod
    def report(self, request_id: Optional[str], event: ProgressEvent) -> None:
        """Deliver one event."""


class NullProgressReporter(ProgressReporter):
    def report(self, request_id: Optional[str], event: ProgressEvent) -> None:
        pass


class LoggingProgressReporter(ProgressReporter):
    """Writes progress to the pipeline log."""

    def report(self, request_id: Optional[str], event: ProgressEvent) -> None:
        eta = f" (ETA {event.eta_seconds}s)" if event.eta_seconds is not None else ""
        _log_info(f"{event.percent:3d}% {event.stage.value}: {event.message}{eta}")


class JsonlProgressReporter(ProgressReporter):
    """Appends progress to the pipeline event log (JSON Lines)."""

    def __init__(self, events_file: Optional[Path] = None, source: str = "pipeline"):
        self.events_file = events_file
        self.source = source

    def report(self, request_id: Optional[str], event: ProgressEvent) -> None:
        log_pipeline_event(
            event_type="progress",
            request_id=request_id,
            source=self.source,
            events_file=self.events_file,
            **event.to_dict(),
        )


class RecordingProgressReporter(ProgressReporter):
    """Keeps events in memory, per request."""

    def __init__(self):
        self.events: Dict[Optional[str], List[ProgressEvent]] = {}

    def report(self, request_id: Optional[str], event: ProgressEvent) -> None:
        self.events.setdefault(request_id, []).append(event)

    def stages(self, request_id: Optional[str] = None) -> List[Stage]:
        return [event.stage for event in self.events.get(request_id, [])]

    def last(self, request_id: Optional[str] = None) -> Optional[ProgressEvent]:
        events = self.events.get(request_id)
        return events[-1] if events else None


class CompositeProgressReporter(ProgressReporter):
    def __init__(self, *reporters: ProgressReporter):
        self.reporters = list(reporters)

    def report(self, request_id: Optional[str], event: ProgressEvent) -> None:
        for reporter in self.reporters:
            reporter.report(request_id, event)


class ProgressTracker:
    """Builds events for one request and hands them to the reporter."""

    def __init__(
        self,
        request_id: Optional[str],
        reporter: ProgressReporter,
        averages: StageAverages,
    ):
        self.request_id = request_id
        self.reporter = reporter
        self.averages = averages

    def emit(
        self, stage: Stage, message: str, remaining: Optional[Iterable[str]] = None
    ) -> ProgressEvent:
        """
        Emit a progress event.

        Args:
            stage: Stage reached
            message: Human-readable status
            remaining: Phases still ahead, for the ETA (None = no ETA)
        """
        if stage == Stage.DONE:
            eta = 0
        elif remaining is None:
            eta = None
        else:
            eta = self.averages.estimate(remaining)
        event = ProgressEvent(
            stage=stage, percent=STAGE_PERCENT[stage], message=message, eta_seconds=eta
        )
        _log_debug(f"progress {self.request_id}: {event.stage.value} {event.percent}%")
        self.reporter.report(self.request_id, event)
        return event
