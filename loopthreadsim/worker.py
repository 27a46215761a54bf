"""One worker process: an event loop, a thread pool and their external calls.

The worker only routes. Async requests go to the event loop, sync requests
to the thread pool; completions are handed back to the owner, which holds
the request registry. Workers share nothing with each other.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Protocol

from loopthreadsim.config import SimulationConfig
from loopthreadsim.core.entity import Entity
from loopthreadsim.core.event import Event
from loopthreadsim.engines.event_loop import EventLoopEngine
from loopthreadsim.engines.external_calls import (
    ExternalCall,
    ExternalCallAction,
    ExternalCallStage,
)
from loopthreadsim.engines.task import EngineTask, TaskPhase
from loopthreadsim.engines.thread_pool import ThreadPoolEngine
from loopthreadsim.model.request import Request, RequestPhase, RequestStatus, RequestType
from loopthreadsim.timing import DurationSampler, TimingModel

logger = logging.getLogger(__name__)


class WorkerOwner(Protocol):
    """What a worker needs from the component that owns the registry."""

    def update_request_phase(
        self, request_id: int, phase: RequestPhase, status: RequestStatus
    ) -> None: ...

    def complete_request(self, request_id: int) -> None: ...

    def external_call_changed(
        self, request_id: int, action: ExternalCallAction, entry: ExternalCall | None
    ) -> None: ...

    def task_phase_changed(self, request_id: int, phase: TaskPhase) -> None: ...


@dataclass(frozen=True)
class WorkerSnapshot:
    """Display counts for one worker at one instant."""

    worker_id: int
    event_loop_queue: int
    event_loop_executing: int
    thread_pool_queue: int
    busy_threads: int
    pool_size: int
    external_calls: int
    routed_async: int
    routed_sync: int


class Worker:
    """Composes the engines of one worker and routes requests to them.

    Args:
        worker_id: Index of this worker.
        config: Run configuration (pool size, speed, external call capacity).
        timing: Duration ranges.
        owner: Receives phase changes, completions and stage changes.
        rng: Random source for duration sampling.
    """

    def __init__(
        self,
        worker_id: int,
        config: SimulationConfig,
        timing: TimingModel,
        owner: WorkerOwner,
        rng: random.Random | None = None,
    ):
        self.worker_id = worker_id
        self._owner = owner
        self._sampler = DurationSampler(timing, config.speed_multiplier, rng)
        self.external_calls = ExternalCallStage(
            worker_id=worker_id,
            capacity=config.external_call_capacity,
            listener=owner.external_call_changed,
        )
        self.event_loop = EventLoopEngine(
            name=f"worker-{worker_id}.event-loop",
            sampler=self._sampler,
            external_calls=self.external_calls,
            on_complete=self.complete_task,
            on_task_phase=self._task_phase_changed,
        )
        self.thread_pool = ThreadPoolEngine(
            name=f"worker-{worker_id}.thread-pool",
            pool_size=config.thread_pool_size,
            sampler=self._sampler,
            external_calls=self.external_calls,
            on_complete=self.complete_task,
            on_task_phase=self._task_phase_changed,
        )
        # Requests this worker has routed and not yet seen complete.
        self._event_loop_tasks: dict[int, Request] = {}
        self._thread_pool_tasks: dict[int, Request] = {}

    def __repr__(self) -> str:
        return f"Worker({self.worker_id}, pool_size={self.thread_pool.pool_size})"

    @property
    def entities(self) -> list[Entity]:
        return [self.event_loop, self.thread_pool]

    def start(self) -> list[Event]:
        """First ticks for both engines."""
        return self.event_loop.start() + self.thread_pool.start()

    def knows(self, request_id: int) -> bool:
        """True if either engine has admitted this id during the current run."""
        return self.event_loop.is_known(request_id) or self.thread_pool.is_known(request_id)

    def can_route(self, request: Request) -> bool:
        return request.phase is RequestPhase.QUEUED and not self.knows(request.id)

    def route(self, request: Request) -> bool:
        """Hand a queued request to the engine matching its type.

        Only the first observation of a request in phase ``queued`` routes
        it. Ids either engine has already seen, completed ones included,
        are ignored and False is returned.
        """
        if not self.can_route(request):
            return False

        if request.type is RequestType.ASYNC:
            if not self.event_loop.submit(request):
                return False
            self._event_loop_tasks[request.id] = request
            phase = RequestPhase.EVENT_LOOP
        else:
            if not self.thread_pool.submit(request):
                return False
            self._thread_pool_tasks[request.id] = request
            phase = RequestPhase.THREAD_POOL

        logger.debug("Worker %d routed request %d to %s", self.worker_id, request.id, phase.value)
        self._owner.update_request_phase(request.id, phase, RequestStatus.PROCESSING)
        return True

    def complete_task(self, request_id: int, request_type: RequestType) -> None:
        if request_type is RequestType.ASYNC:
            self._event_loop_tasks.pop(request_id, None)
        else:
            self._thread_pool_tasks.pop(request_id, None)
        self._owner.complete_request(request_id)

    def _task_phase_changed(self, task: EngineTask, phase: TaskPhase) -> None:
        self._owner.task_phase_changed(task.id, phase)

    def snapshot(self) -> WorkerSnapshot:
        return WorkerSnapshot(
            worker_id=self.worker_id,
            event_loop_queue=self.event_loop.queue_depth,
            event_loop_executing=self.event_loop.executing_count,
            thread_pool_queue=self.thread_pool.queue_depth,
            busy_threads=self.thread_pool.busy_threads,
            pool_size=self.thread_pool.pool_size,
            external_calls=self.external_calls.active,
            routed_async=len(self._event_loop_tasks),
            routed_sync=len(self._thread_pool_tasks),
        )

    def reset(self) -> None:
        self.event_loop.reset()
        self.thread_pool.reset()
        self.external_calls.clear()
        self._event_loop_tasks.clear()
        self._thread_pool_tasks.clear()
