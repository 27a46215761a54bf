"""Top-level run context: request ids, the registry, workers and listeners.

SimulationController plays the role of the interactive application. It
starts and stops runs, creates requests, assigns each to a random worker,
and fans engine notifications out to registered listeners. It holds no
scheduling logic; that lives in the engines.

Example::

    controller = SimulationController(SimulationConfig(thread_pool_size=2, seed=7))
    controller.add_listener(recorder)
    controller.start(async_requests=5, sync_requests=5)
    controller.run()          # until the run auto-stops
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace

from loopthreadsim.config import SimulationConfig, clamp_batch_size
from loopthreadsim.core.event import Event
from loopthreadsim.core.simulation import Simulation
from loopthreadsim.core.temporal import Instant
from loopthreadsim.engines.external_calls import ExternalCall, ExternalCallAction
from loopthreadsim.engines.task import TaskPhase
from loopthreadsim.instrumentation.summary import SimulationSummary
from loopthreadsim.listeners import SimulationListener
from loopthreadsim.model.registry import RequestRegistry
from loopthreadsim.model.request import (
    Request,
    RequestIdGenerator,
    RequestPhase,
    RequestStatus,
    RequestType,
)
from loopthreadsim.timing import TimingModel
from loopthreadsim.worker import Worker, WorkerSnapshot

logger = logging.getLogger(__name__)

STOP_REASON_USER = "stopped"
STOP_REASON_COMPLETED = "completed"


class SimulationController:
    """Owns one simulation timeline and runs request batches on it.

    Args:
        config: Initial configuration. Defaults to SimulationConfig().
        timing: Duration ranges. Defaults to TimingModel().
        simulation: Timeline to schedule on. A fresh one is created if omitted.
    """

    def __init__(
        self,
        config: SimulationConfig | None = None,
        timing: TimingModel | None = None,
        simulation: Simulation | None = None,
    ):
        self._config = config or SimulationConfig()
        self._pending_config: SimulationConfig | None = None
        self._timing = timing or TimingModel()
        self._sim = simulation or Simulation()
        self._ids = RequestIdGenerator()
        self.registry = RequestRegistry()
        self._workers: list[Worker] = []
        self._listeners: list[SimulationListener] = []
        self._rng = random.Random(self._config.seed)
        self._running = False
        self._run_id = 0
        self._submitted_in_run = 0
        self._auto_stop_event: Event | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def timing(self) -> TimingModel:
        return self._timing

    @property
    def simulation(self) -> Simulation:
        return self._sim

    @property
    def now(self) -> Instant:
        return self._sim.now

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def run_id(self) -> int:
        return self._run_id

    @property
    def workers(self) -> list[Worker]:
        return list(self._workers)

    def snapshot(self) -> list[WorkerSnapshot]:
        return [worker.snapshot() for worker in self._workers]

    def add_listener(self, listener: SimulationListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SimulationListener) -> None:
        self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def reconfigure(self, **changes) -> SimulationConfig:
        """Update configuration fields; values are clamped.

        While a run is in progress the new configuration is held back and
        applied by the next start(), so in-flight work never migrates.
        """
        base = self._pending_config or self._config
        updated = replace(base, **changes)
        if self._running:
            self._pending_config = updated
            logger.info("Configuration change deferred until the next run")
        else:
            self._config = updated
            self._rng = random.Random(updated.seed)
        return updated

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def start(self, async_requests: int = 0, sync_requests: int = 0) -> bool:
        """Begin a run and schedule the initial batch.

        The batch is submitted after the configured batch delay: all async
        requests first, then all sync requests.

        Returns:
            False if a run is already in progress.
        """
        if self._running:
            logger.info("start() ignored: run %d is in progress", self._run_id)
            return False

        if self._pending_config is not None:
            self._config = self._pending_config
            self._pending_config = None
            self._rng = random.Random(self._config.seed)

        async_requests = clamp_batch_size(async_requests)
        sync_requests = clamp_batch_size(sync_requests)

        self._run_id += 1
        self._running = True
        self._submitted_in_run = 0
        self._auto_stop_event = None
        self._ids.reset()
        self.registry.clear()
        self._workers = self._build_workers()

        for worker in self._workers:
            for entity in worker.entities:
                self._sim.add_entity(entity)
            self._sim.schedule(worker.start())

        run_id = self._run_id
        self._sim.schedule(
            Event.once(
                time=self.now + self._timing.batch_delay / 1000.0,
                event_type="controller.batch",
                fn=lambda event: self._submit_batch(run_id, async_requests, sync_requests),
            )
        )

        logger.info(
            "Run %d started: workers=%d pool_size=%d speed=%d async=%d sync=%d",
            run_id,
            self._config.num_workers,
            self._config.thread_pool_size,
            self._config.simulation_speed,
            async_requests,
            sync_requests,
        )
        for listener in self._listeners:
            listener.on_run_started(run_id)
        return True

    def stop(self, reason: str = STOP_REASON_USER) -> bool:
        """End the run, cancel every timer and clear all state.

        Returns:
            False if no run was in progress.
        """
        if not self._running:
            return False

        self._running = False
        self._sim.cancel_pending()
        for worker in self._workers:
            worker.reset()
            for entity in worker.entities:
                self._sim.remove_entity(entity)
        remaining = len(self.registry)
        self.registry.clear()
        self._auto_stop_event = None

        logger.info(
            "Run %d %s at %r (%d request(s) abandoned)",
            self._run_id,
            reason,
            self.now,
            remaining,
        )
        for listener in self._listeners:
            listener.on_run_stopped(self._run_id, reason)
        return True

    def run(self, until: Instant | None = None) -> SimulationSummary:
        """Advance the timeline; without ``until`` run until the run stops."""
        return self._sim.run(until=until)

    def advance(self, seconds: float) -> SimulationSummary:
        """Advance the timeline by a fixed amount of virtual time."""
        return self._sim.run(until=self.now + seconds)

    def _build_workers(self) -> list[Worker]:
        return [
            Worker(
                worker_id=index,
                config=self._config,
                timing=self._timing,
                owner=self,
                rng=random.Random(self._rng.getrandbits(64)),
            )
            for index in range(self._config.num_workers)
        ]

    def _submit_batch(self, run_id: int, async_requests: int, sync_requests: int) -> None:
        if run_id != self._run_id or not self._running:
            return
        for _ in range(async_requests):
            self.add_request(RequestType.ASYNC)
        for _ in range(sync_requests):
            self.add_request(RequestType.SYNC)
        if self._submitted_in_run == 0:
            self.stop(STOP_REASON_COMPLETED)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def add_request(self, request_type: RequestType | str) -> Request | None:
        """Create a request with the next free id and a random worker, then submit it.

        Ids already taken by manually submitted requests are skipped.
        Returns None when no run is in progress or the request was refused.
        """
        if not self._running:
            logger.debug("add_request ignored: no run in progress")
            return None

        request_id = self._ids.next_id()
        while self._id_in_use(request_id):
            request_id = self._ids.next_id()

        request = Request(
            id=request_id,
            type=RequestType(request_type),
            worker_id=self._rng.randrange(len(self._workers)),
            start_time=self.now,
        )
        return request if self.submit_request(request) else None

    def submit_request(self, request: Request) -> bool:
        """Register a request and route it to its worker.

        An id is accepted once per run: ids in the registry or already seen
        by any worker, completed ones included, are ignored.
        """
        if not self._running:
            return False
        if self._id_in_use(request.id):
            logger.debug("Request %d already seen in this run; submission ignored", request.id)
            return False

        if not 0 <= request.worker_id < len(self._workers):
            clamped = min(max(request.worker_id, 0), len(self._workers) - 1)
            logger.debug("Request %d worker %d clamped to %d", request.id, request.worker_id, clamped)
            request.worker_id = clamped

        worker = self._workers[request.worker_id]
        if not worker.can_route(request):
            logger.debug("Request %d in phase %s cannot be routed", request.id, request.phase.value)
            return False

        self._cancel_auto_stop()
        self.registry.add(request)
        self._submitted_in_run += 1
        for listener in self._listeners:
            listener.on_submit(request)

        worker.route(request)
        return True

    def _id_in_use(self, request_id: int) -> bool:
        return request_id in self.registry or any(w.knows(request_id) for w in self._workers)

    # ------------------------------------------------------------------
    # Worker callbacks
    # ------------------------------------------------------------------

    def update_request_phase(
        self,
        request_id: int,
        phase: RequestPhase,
        status: RequestStatus = RequestStatus.PROCESSING,
    ) -> None:
        if self.registry.update_phase(request_id, phase, status) is None:
            return
        for listener in self._listeners:
            listener.on_phase_change(request_id, phase, status)

    def complete_request(self, request_id: int) -> None:
        if self.registry.remove(request_id) is None:
            logger.debug("Completion for unknown request %d ignored", request_id)
            return
        for listener in self._listeners:
            listener.on_complete(request_id)
        if self._running and len(self.registry) == 0 and self._submitted_in_run > 0:
            self._schedule_auto_stop()

    def external_call_changed(
        self, request_id: int, action: ExternalCallAction, entry: ExternalCall | None
    ) -> None:
        for listener in self._listeners:
            listener.on_external_call_change(request_id, action, entry)

    def task_phase_changed(self, request_id: int, phase: TaskPhase) -> None:
        for listener in self._listeners:
            listener.on_task_phase(request_id, phase)

    # ------------------------------------------------------------------
    # Auto-stop
    # ------------------------------------------------------------------

    def _schedule_auto_stop(self) -> None:
        self._cancel_auto_stop()
        run_id = self._run_id
        self._auto_stop_event = Event.once(
            time=self.now + self._timing.auto_stop_delay / 1000.0,
            event_type="controller.auto_stop",
            fn=lambda event: self._auto_stop(run_id),
        )
        self._sim.schedule(self._auto_stop_event)

    def _cancel_auto_stop(self) -> None:
        if self._auto_stop_event is not None:
            self._auto_stop_event.cancel()
            self._auto_stop_event = None

    def _auto_stop(self, run_id: int) -> None:
        if run_id != self._run_id or len(self.registry) > 0:
            return
        logger.info("Run %d: all requests completed", run_id)
        self.stop(STOP_REASON_COMPLETED)
