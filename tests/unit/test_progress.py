"""
Unit tests for progress events, ETA estimation and reporters.
"""

import pytest

from quill.contexts.pipeline.progress import (
    COMPILE,
    LLM,
    REFINE,
    CompositeProgressReporter,
    JsonlProgressReporter,
    ProgressEvent,
    ProgressReporter,
    ProgressTracker,
    RecordingProgressReporter,
    Stage,
    StageAverages,
)
from quill.utils.event_logging import get_recent_events


@pytest.mark.unit
class TestStageAverages:
    """Tests for exponential smoothing of stage durations."""

    def test_initial_averages(self):
        averages = StageAverages()
        assert averages.estimate([LLM, REFINE, COMPILE]) == 88

    def test_update_smooths(self):
        averages = StageAverages()
        averages.update(COMPILE, 18.0)
        assert averages.averages[COMPILE] == pytest.approx(11.0)

    @pytest.mark.parametrize("duration", [0, -3.0, None])
    def test_non_positive_durations_ignored(self, duration):
        averages = StageAverages()
        averages.update(COMPILE, duration)
        assert averages.averages[COMPILE] == 8.0

    def test_unknown_phase_starts_at_observation(self):
        averages = StageAverages(initial={})
        averages.update("upload", 4.0)
        assert averages.averages["upload"] == 4.0

    def test_estimate_rounds_and_ignores_unknown(self):
        averages = StageAverages(initial={LLM: 1.4, COMPILE: 1.4})
        assert averages.estimate([LLM, COMPILE, "unknown"]) == 3
        assert averages.estimate([]) == 0


@pytest.mark.unit
class TestProgressTracker:
    """Tests for event construction."""

    def test_event_fields(self):
        reporter = RecordingProgressReporter()
        tracker = ProgressTracker("req-1", reporter, StageAverages())

        event = tracker.emit(Stage.LLM_START, "Calling AI model...", [LLM, COMPILE])

        assert event.percent == 15
        assert event.eta_seconds == 68
        assert event.message == "Calling AI model..."
        assert reporter.last("req-1") is event

    def test_done_has_zero_eta(self):
        tracker = ProgressTracker(None, RecordingProgressReporter(), StageAverages())
        assert tracker.emit(Stage.DONE, "done", [LLM]).eta_seconds == 0

    def test_no_remaining_means_no_eta(self):
        tracker = ProgressTracker(None, RecordingProgressReporter(), StageAverages())
        assert tracker.emit(Stage.ERROR, "failed").eta_seconds is None

    def test_events_kept_per_request(self):
        reporter = RecordingProgressReporter()
        averages = StageAverages()
        ProgressTracker("a", reporter, averages).emit(Stage.RECEIVED, "a")
        ProgressTracker("b", reporter, averages).emit(Stage.RECEIVED, "b")
        ProgressTracker("a", reporter, averages).emit(Stage.DONE, "a")

        assert reporter.stages("a") == [Stage.RECEIVED, Stage.DONE]
        assert reporter.stages("b") == [Stage.RECEIVED]
        assert reporter.last("missing") is None

    def test_to_dict_uses_stage_value(self):
        event = ProgressEvent(stage=Stage.COMPILE_PASS, percent=75, message="m", eta_seconds=8)
        data = event.to_dict()
        assert data["stage"] == "compile_pass"
        assert data["eta_seconds"] == 8


@pytest.mark.unit
class TestReporters:
    """Tests for the JSON Lines and composite reporters."""

    def test_base_reporter_is_abstract(self):
        with pytest.raises(TypeError):
            ProgressReporter()

    def test_jsonl_reporter(self, tmp_path):
        events_file = tmp_path / "logs" / "events.log"
        tracker = ProgressTracker(
            "acme-42", JsonlProgressReporter(events_file=events_file), StageAverages()
        )

        tracker.emit(Stage.RECEIVED, "Request received", [LLM, COMPILE])
        tracker.emit(Stage.DONE, "Resume ready")

        events = get_recent_events(request_id="acme-42", events_file=events_file)
        assert [e["stage"] for e in events] == ["received", "done"]
        assert events[0]["event_type"] == "progress"
        assert events[0]["source"] == "pipeline"
        assert events[0]["eta_seconds"] == 68
        assert events[1]["percent"] == 100

    def test_recent_events_limit_and_filter(self, tmp_path):
        events_file = tmp_path / "events.log"
        reporter = JsonlProgressReporter(events_file=events_file)
        averages = StageAverages()
        for request_id in ["a", "b", "a", "a"]:
            ProgressTracker(request_id, reporter, averages).emit(Stage.RECEIVED, request_id)

        assert len(get_recent_events(n=2, events_file=events_file)) == 2
        assert len(get_recent_events(request_id="a", events_file=events_file)) == 3
        assert get_recent_events(events_file=tmp_path / "absent.log") == []

    def test_composite_fans_out(self):
        first, second = RecordingProgressReporter(), RecordingProgressReporter()
        tracker = ProgressTracker("x", CompositeProgressReporter(first, second), StageAverages())

        tracker.emit(Stage.RECEIVED, "Request received")

        assert first.stages("x") == second.stages("x") == [Stage.RECEIVED]
