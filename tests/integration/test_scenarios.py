"""End-to-end runs checked against the scheduling invariants.

Each test drives a SimulationController on virtual time and inspects every
worker after every processed event.
"""

import random
from collections import Counter

import pytest

from loopthreadsim import (
    RequestType,
    SimulationConfig,
    SimulationController,
    SimulationListener,
    TimelineRecorder,
    TimingModel,
)
from loopthreadsim.controller import STOP_REASON_COMPLETED


class InvariantChecker:
    """Event hook asserting the per-instant invariants of every worker."""

    def __init__(self, controller: SimulationController):
        self.controller = controller
        self.checks = 0
        self.max_busy = 0
        self.max_external = 0
        controller.simulation.add_event_hook(self)

    def __call__(self, event) -> None:
        for worker in self.controller.workers:
            loop = worker.event_loop
            pool = worker.thread_pool
            stage = worker.external_calls

            assert loop.executing_count <= 1
            assert pool.busy_threads <= pool.pool_size

            # An async request sits in exactly one of queue, slot, external call.
            async_places = Counter(loop.queued_ids)
            if loop.executing is not None:
                async_places[loop.executing.id] += 1
            for call in stage.snapshot():
                if call.request_type is RequestType.ASYNC:
                    async_places[call.id] += 1
            assert all(n == 1 for n in async_places.values()), async_places

            # A sync request is either queued or on a thread, never both.
            on_threads = [s.current_task.id for s in pool.slots if s.busy]
            assert len(on_threads) == len(set(on_threads))
            assert not set(on_threads) & set(pool.queued_ids)

            self.max_busy = max(self.max_busy, pool.busy_threads)
            self.max_external = max(self.max_external, stage.active)
        self.checks += 1


class CompletionCounter(SimulationListener):
    def __init__(self):
        self.submitted = []
        self.completed = Counter()
        self.stops = []

    def on_submit(self, request):
        self.submitted.append(request.id)

    def on_complete(self, request_id):
        self.completed[request_id] += 1

    def on_run_stopped(self, run_id, reason):
        self.stops.append(reason)


class TestSpecifiedScenarios:
    def test_pool_of_one_serializes_sync_requests(self, constant_timing):
        controller = SimulationController(
            SimulationConfig(thread_pool_size=1, simulation_speed=10), constant_timing
        )
        recorder = TimelineRecorder(controller)
        controller.start(sync_requests=2)

        controller.advance(1.0)
        worker = controller.workers[0]
        assert worker.thread_pool.slots[0].current_task.id == 1
        assert worker.thread_pool.queued_ids == [2]

        controller.run()

        # Request 2 only starts after request 1's call was added and removed.
        entries = [(e.request_id, e.kind, e.value) for e in recorder.entries]
        removed_1 = entries.index((1, "external", "remove"))
        started_2 = entries.index((2, "task", "pre-call"))
        assert entries.index((1, "external", "add")) < removed_1 < started_2
        assert recorder.completion_order() == [1, 2]

    def test_lone_async_request_phases(self, constant_timing):
        controller = SimulationController(SimulationConfig(simulation_speed=10), constant_timing)
        recorder = TimelineRecorder(controller)
        controller.start(async_requests=1)
        controller.run()

        sequence = [
            (e.kind, e.value) for e in recorder.for_request(1) if e.kind in ("task", "external")
        ]
        assert sequence == [
            ("task", "pre-call"),
            ("external", "add"),
            ("task", "db-operation"),
            ("external", "remove"),
            ("task", "post-call"),
            ("task", "completed"),
        ]

    def test_async_overlaps_calls_while_sync_is_bounded(self):
        """Ten of each with a pool of two: async calls overlap far beyond two."""
        controller = SimulationController(
            SimulationConfig(thread_pool_size=2, simulation_speed=10, seed=11),
            TimingModel.constant(pre_call=50),
        )
        checker = InvariantChecker(controller)
        recorder = TimelineRecorder(controller)
        controller.start(async_requests=10, sync_requests=10)
        controller.run()

        assert checker.max_busy == 2
        assert controller.workers[0].external_calls.peak > 2

        finished = {e.request_id: e.time_s for e in recorder.entries if e.kind == "complete"}
        async_done = max(t for rid, t in finished.items() if rid <= 10)
        sync_done = max(t for rid, t in finished.items() if rid > 10)
        assert async_done < sync_done


class TestRandomArrivals:
    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5, 6])
    def test_invariants_hold_and_everything_completes_once(self, seed):
        rng = random.Random(seed)
        controller = SimulationController(
            SimulationConfig(
                num_workers=rng.randint(1, 3),
                thread_pool_size=rng.randint(1, 4),
                simulation_speed=10,
                seed=seed,
            )
        )
        checker = InvariantChecker(controller)
        counter = CompletionCounter()
        controller.add_listener(counter)

        controller.start(async_requests=rng.randint(0, 15), sync_requests=rng.randint(1, 15))
        for _ in range(20):
            controller.advance(rng.uniform(0.0, 0.8))
            if controller.is_running:
                controller.add_request(rng.choice([RequestType.ASYNC, RequestType.SYNC]))
        controller.run()

        assert checker.checks > 0
        assert not controller.is_running
        assert counter.stops == [STOP_REASON_COMPLETED]
        assert sorted(counter.completed) == sorted(counter.submitted)
        assert set(counter.completed.values()) == {1}
        assert checker.max_busy <= controller.config.thread_pool_size

    @pytest.mark.parametrize("speed", [1, 5, 10])
    def test_slower_speeds_stretch_the_run(self, speed, constant_timing):
        controller = SimulationController(
            SimulationConfig(thread_pool_size=1, simulation_speed=speed), constant_timing
        )
        recorder = TimelineRecorder(controller)
        controller.start(async_requests=1)
        controller.run()

        times = {(e.kind, e.value): e.time_s for e in recorder.for_request(1)}
        duration = times[("external", "remove")] - times[("external", "add")]
        assert duration == pytest.approx(0.8 * (11 - speed))


class TestStopAndReset:
    @pytest.mark.parametrize("stop_at", [0.3, 0.9, 1.7, 2.6])
    def test_nothing_fires_after_stop(self, stop_at):
        controller = SimulationController(
            SimulationConfig(num_workers=2, thread_pool_size=2, simulation_speed=10, seed=9)
        )
        recorder = TimelineRecorder(controller)
        controller.start(async_requests=8, sync_requests=8)
        controller.advance(stop_at)
        controller.stop()
        stopped_entries = len(recorder.entries)

        for worker in controller.workers:
            snap = worker.snapshot()
            assert snap.event_loop_queue == 0
            assert snap.event_loop_executing == 0
            assert snap.thread_pool_queue == 0
            assert snap.busy_threads == 0
            assert snap.external_calls == 0

        controller.advance(30.0)
        assert len(recorder.entries) == stopped_entries

    def test_reconfigured_rerun_completes(self):
        controller = SimulationController(SimulationConfig(thread_pool_size=1, simulation_speed=10))
        counter = CompletionCounter()
        controller.add_listener(counter)

        controller.start(sync_requests=4)
        controller.advance(1.0)
        controller.reconfigure(thread_pool_size=4)
        controller.stop()

        counter.completed.clear()
        counter.submitted.clear()
        checker = InvariantChecker(controller)
        controller.start(sync_requests=4)
        controller.run()

        assert checker.max_busy == 4
        assert sorted(counter.completed) == [1, 2, 3, 4]
