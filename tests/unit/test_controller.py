"""Tests for SimulationController run lifecycle and submission."""

import pytest

from loopthreadsim.config import SimulationConfig
from loopthreadsim.controller import STOP_REASON_COMPLETED, STOP_REASON_USER, SimulationController
from loopthreadsim.core.temporal import Instant
from loopthreadsim.listeners import SimulationListener
from loopthreadsim.model.request import Request, RequestPhase, RequestType


class EventLog(SimulationListener):
    """Records listener callbacks as (time_s, name, detail) tuples."""

    def __init__(self, controller):
        self.controller = controller
        self.events = []

    def _log(self, name, detail):
        self.events.append((self.controller.now.to_seconds(), name, detail))

    def on_run_started(self, run_id):
        self._log("started", run_id)

    def on_run_stopped(self, run_id, reason):
        self._log("stopped", reason)

    def on_submit(self, request):
        self._log("submit", (request.id, request.type))

    def on_phase_change(self, request_id, phase, status):
        self._log("phase", (request_id, phase))

    def on_complete(self, request_id):
        self._log("complete", request_id)

    def named(self, name):
        return [(t, detail) for t, event_name, detail in self.events if event_name == name]


@pytest.fixture
def controller(constant_timing):
    config = SimulationConfig(num_workers=1, thread_pool_size=1, simulation_speed=10, seed=1)
    return SimulationController(config=config, timing=constant_timing)


@pytest.fixture
def log(controller):
    listener = EventLog(controller)
    controller.add_listener(listener)
    return listener


class TestStartStop:
    def test_start_builds_workers(self, controller, log):
        assert controller.start(async_requests=1)
        assert controller.is_running
        assert controller.run_id == 1
        assert len(controller.workers) == 1
        assert log.named("started") == [(0.0, 1)]

    def test_start_while_running_is_ignored(self, controller):
        controller.start(async_requests=1)
        assert not controller.start(async_requests=1)
        assert controller.run_id == 1

    def test_stop_when_idle_is_noop(self, controller, log):
        assert not controller.stop()
        assert log.events == []

    def test_stop_cancels_everything(self, controller, log):
        controller.start(async_requests=3, sync_requests=2)
        controller.advance(0.7)
        assert len(controller.registry) == 5

        assert controller.stop()
        assert not controller.is_running
        assert len(controller.registry) == 0
        assert controller.simulation.pending == 0
        assert log.named("stopped") == [(pytest.approx(0.7), STOP_REASON_USER)]

        events_before = len(log.events)
        controller.advance(10.0)
        assert len(log.events) == events_before

    def test_stop_resets_worker_state(self, controller):
        controller.start(async_requests=2, sync_requests=2)
        controller.advance(1.0)
        worker = controller.workers[0]
        controller.stop()

        snap = worker.snapshot()
        assert snap.event_loop_queue == 0
        assert snap.event_loop_executing == 0
        assert snap.thread_pool_queue == 0
        assert snap.busy_threads == 0
        assert snap.external_calls == 0

    def test_stopped_workers_are_detached(self, controller):
        for _ in range(5):
            controller.start(async_requests=1)
            controller.stop()
        assert controller.simulation.entities == []

        controller.start(async_requests=1)
        assert len(controller.simulation.entities) == 2

    def test_restart_begins_fresh(self, controller, log):
        controller.start(async_requests=2)
        controller.advance(0.5)
        controller.stop()

        controller.start(sync_requests=1)
        controller.run()

        assert controller.run_id == 2
        submits = log.named("submit")
        assert [detail for _, detail in submits] == [
            (1, RequestType.ASYNC),
            (2, RequestType.ASYNC),
            (1, RequestType.SYNC),
        ]
        assert log.named("complete")[-1][1] == 1


class TestBatchSubmission:
    def test_batch_submitted_after_delay_async_first(self, controller, log):
        controller.start(async_requests=2, sync_requests=2)
        controller.advance(0.15)

        submits = log.named("submit")
        assert [t for t, _ in submits] == [pytest.approx(0.1)] * 4
        assert [detail for _, detail in submits] == [
            (1, RequestType.ASYNC),
            (2, RequestType.ASYNC),
            (3, RequestType.SYNC),
            (4, RequestType.SYNC),
        ]

    def test_requests_move_out_of_queued_phase(self, controller, log):
        controller.start(async_requests=1, sync_requests=1)
        controller.advance(0.15)

        assert controller.registry.get(1).phase is RequestPhase.EVENT_LOOP
        assert controller.registry.get(2).phase is RequestPhase.THREAD_POOL

    def test_batch_sizes_are_clamped(self, controller, log):
        controller.start(async_requests=80, sync_requests=-4)
        controller.advance(0.15)
        assert len(log.named("submit")) == 50

    def test_empty_batch_stops_immediately(self, controller, log):
        controller.start()
        controller.run()

        assert not controller.is_running
        assert log.named("stopped") == [(pytest.approx(0.1), STOP_REASON_COMPLETED)]


class TestAutoStop:
    def test_single_async_request(self, controller, log):
        controller.start(async_requests=1)
        controller.run()

        assert log.named("complete") == [(pytest.approx(1.7), 1)]
        assert log.named("stopped") == [(pytest.approx(3.2), STOP_REASON_COMPLETED)]
        assert not controller.is_running

    def test_sync_requests_share_one_thread(self, controller, log):
        controller.start(sync_requests=2)
        controller.run()

        assert log.named("complete") == [(pytest.approx(2.4), 1), (pytest.approx(4.4), 2)]
        assert log.named("stopped") == [(pytest.approx(5.9), STOP_REASON_COMPLETED)]

    def test_new_request_cancels_pending_auto_stop(self, controller, log):
        controller.start(async_requests=1)
        controller.run(until=Instant.from_seconds(2.0))
        assert controller.is_running

        controller.add_request(RequestType.SYNC)
        controller.run()

        assert [detail for _, detail in log.named("complete")] == [1, 2]
        assert log.named("stopped") == [(pytest.approx(5.9), STOP_REASON_COMPLETED)]

    def test_run_stays_alive_while_requests_remain(self, controller):
        controller.start(sync_requests=3)
        controller.advance(5.0)
        assert controller.is_running
        assert len(controller.registry) == 1


class TestSubmission:
    def test_add_request_without_run_returns_none(self, controller, log):
        assert controller.add_request(RequestType.ASYNC) is None
        assert log.events == []

    def test_add_request_assigns_next_id(self, controller):
        controller.start(async_requests=2)
        controller.advance(0.15)
        request = controller.add_request("sync")
        assert request.id == 3
        assert request.type is RequestType.SYNC
        assert request.worker_id == 0

    def test_duplicate_id_ignored(self, controller, log):
        controller.start(async_requests=1)
        controller.advance(0.15)
        duplicate = Request(id=1, type=RequestType.SYNC, worker_id=0, start_time=controller.now)

        assert not controller.submit_request(duplicate)
        assert controller.registry.get(1).type is RequestType.ASYNC
        assert len(log.named("submit")) == 1

    def test_resubmitting_completed_id_still_auto_stops(self, controller, log):
        controller.start(async_requests=2)
        # Request 1 completes at 1.7; request 2 is still awaiting its call.
        controller.advance(1.75)
        assert [detail for _, detail in log.named("complete")] == [1]

        again = Request(id=1, type=RequestType.ASYNC, worker_id=0, start_time=controller.now)
        assert not controller.submit_request(again)
        assert 1 not in controller.registry
        assert controller.snapshot()[0].routed_async == 1

        controller.run()
        assert not controller.is_running
        assert [detail for _, detail in log.named("complete")] == [1, 2]
        assert log.named("stopped")[-1][1] == STOP_REASON_COMPLETED
        assert len(log.named("submit")) == 2

    def test_completed_id_refused_on_another_worker(self, constant_timing):
        controller = SimulationController(
            config=SimulationConfig(num_workers=2, simulation_speed=10, seed=3),
            timing=constant_timing,
        )
        controller.start()
        controller.submit_request(
            Request(id=5, type=RequestType.ASYNC, worker_id=0, start_time=controller.now)
        )
        controller.advance(2.5)
        assert 5 not in controller.registry
        assert controller.is_running

        assert not controller.submit_request(
            Request(id=5, type=RequestType.ASYNC, worker_id=1, start_time=controller.now)
        )
        controller.run()
        assert not controller.is_running

    def test_add_request_skips_ids_taken_manually(self, controller):
        controller.start()
        controller.submit_request(
            Request(id=1, type=RequestType.ASYNC, worker_id=0, start_time=controller.now)
        )
        request = controller.add_request(RequestType.SYNC)

        assert request.id == 2
        assert controller.registry.get(2) is request
        assert [r.id for r in controller.registry.active()] == [1, 2]

    def test_out_of_range_worker_is_clamped(self, controller):
        controller.start()
        controller.submit_request(
            Request(id=10, type=RequestType.ASYNC, worker_id=7, start_time=controller.now)
        )
        assert controller.registry.get(10).worker_id == 0

    def test_each_request_completes_once(self, controller, log):
        controller.start(async_requests=4, sync_requests=4)
        controller.run()

        completed = [detail for _, detail in log.named("complete")]
        assert sorted(completed) == list(range(1, 9))
        assert len(controller.registry) == 0
        assert not controller.is_running


class TestReconfigure:
    def test_applies_immediately_when_idle(self, controller):
        config = controller.reconfigure(thread_pool_size=40)
        assert config.thread_pool_size == 16
        assert controller.config.thread_pool_size == 16

    def test_deferred_while_running(self, controller):
        controller.start(sync_requests=1)
        controller.reconfigure(thread_pool_size=3, num_workers=2)

        assert controller.config.thread_pool_size == 1
        assert controller.workers[0].thread_pool.pool_size == 1

        controller.stop()
        controller.start(sync_requests=1)

        assert controller.config.thread_pool_size == 3
        assert len(controller.workers) == 2
        assert all(w.thread_pool.pool_size == 3 for w in controller.workers)


class TestWorkerAssignment:
    def test_same_seed_same_assignment(self, constant_timing):
        def assignment(seed):
            controller = SimulationController(
                SimulationConfig(num_workers=4, simulation_speed=10, seed=seed),
                constant_timing,
            )
            controller.start(async_requests=10, sync_requests=10)
            controller.advance(0.15)
            return [r.worker_id for r in controller.registry.active()]

        first = assignment(42)
        assert first == assignment(42)
        assert set(first) <= {0, 1, 2, 3}

    def test_snapshot_per_worker(self, constant_timing):
        controller = SimulationController(
            SimulationConfig(num_workers=3, simulation_speed=10), constant_timing
        )
        controller.start()
        assert [snap.worker_id for snap in controller.snapshot()] == [0, 1, 2]
