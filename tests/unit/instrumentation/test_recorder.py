"""Tests for TimelineRecorder."""

import pytest

from loopthreadsim import SimulationConfig, SimulationController, TimelineRecorder
from loopthreadsim.instrumentation.recorder import COLUMNS


@pytest.fixture
def controller(constant_timing):
    config = SimulationConfig(thread_pool_size=1, simulation_speed=10, seed=3)
    return SimulationController(config=config, timing=constant_timing)


class TestTimelineRecorder:
    def test_async_request_timeline(self, controller):
        recorder = TimelineRecorder(controller)
        controller.start(async_requests=1)
        controller.run()

        assert recorder.values("submit", 1) == ["queued"]
        assert recorder.values("phase", 1) == ["event-loop"]
        assert recorder.values("task", 1) == ["pre-call", "db-operation", "post-call", "completed"]
        assert recorder.values("external", 1) == ["add", "remove"]
        assert recorder.values("run") == ["started", "completed"]
        assert recorder.completion_order() == [1]

    def test_sync_request_timeline(self, controller):
        recorder = TimelineRecorder(controller)
        controller.start(sync_requests=1)
        controller.run()

        assert recorder.values("phase", 1) == ["thread-pool"]
        assert recorder.values("task", 1) == ["pre-call", "db-operation", "completed"]

    def test_entries_carry_request_metadata(self, controller):
        recorder = TimelineRecorder(controller)
        controller.start(sync_requests=1)
        controller.run()

        complete = [e for e in recorder.for_request(1) if e.kind == "complete"][0]
        assert complete.request_type == "sync"
        assert complete.worker_id == 0
        assert complete.run_id == 1
        assert complete.time_s == pytest.approx(2.4)

    def test_request_ids_filter(self, controller):
        recorder = TimelineRecorder(controller)
        controller.start(async_requests=2, sync_requests=1)
        controller.run()

        # Async calls start at 0.6s and 1.0s, the blocking call at 1.3s.
        assert recorder.request_ids("task", "db-operation") == [1, 2, 3]
        assert recorder.request_ids("submit") == [1, 2, 3]

    def test_to_dataframe(self, controller):
        recorder = TimelineRecorder(controller)
        controller.start(async_requests=1)
        controller.run()

        frame = recorder.to_dataframe()
        assert list(frame.columns) == COLUMNS
        assert len(frame) == len(recorder.entries)
        assert set(frame["kind"]) == {"run", "submit", "phase", "task", "external", "complete"}

    def test_empty_dataframe_has_columns(self, controller):
        frame = TimelineRecorder(controller).to_dataframe()
        assert frame.empty
        assert list(frame.columns) == COLUMNS

    def test_clear(self, controller):
        recorder = TimelineRecorder(controller)
        controller.start(async_requests=1)
        controller.run()
        recorder.clear()
        assert recorder.entries == []
