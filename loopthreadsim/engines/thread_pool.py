"""Bounded pool of blocking worker threads.

Each slot models one thread. A sync task holds its slot from assignment
until completion, including the whole external call: the thread blocks on
the call instead of yielding. With every slot busy, new sync work waits in
the FIFO queue no matter how idle the external dependency is.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass

from loopthreadsim.core.event import Event
from loopthreadsim.core.temporal import Instant
from loopthreadsim.engines.base import CompletionCallback, Engine, TaskPhaseCallback
from loopthreadsim.engines.external_calls import ExternalCallStage
from loopthreadsim.engines.task import EngineTask, SchedulingInvariantError, TaskPhase
from loopthreadsim.model.request import RequestType
from loopthreadsim.timing import DurationSampler

logger = logging.getLogger(__name__)


@dataclass
class ThreadSlot:
    """One thread of the pool.

    Attributes:
        id: Position in the pool, 0..pool_size-1.
        busy: Whether a task occupies this thread.
        current_task: The occupying task.
        started_at: When the current task was assigned.
    """

    id: int
    busy: bool = False
    current_task: EngineTask | None = None
    started_at: Instant | None = None

    def release(self) -> None:
        self.busy = False
        self.current_task = None
        self.started_at = None


@dataclass(frozen=True)
class ThreadPoolStats:
    """Snapshot of thread pool counters."""

    tasks_submitted: int
    tasks_completed: int
    duplicates_ignored: int
    peak_queue_depth: int
    peak_busy_threads: int
    total_busy_time: float


class ThreadPoolEngine(Engine):
    """Fixed-size pool engine for sync requests.

    A recurring tick every 500 ms walks the slots in index order and hands
    the queue head to each free slot until either runs out.

    Args:
        pool_size: Number of threads (must be >= 1; callers clamp first).
    """

    request_type = RequestType.SYNC

    def __init__(
        self,
        name: str,
        pool_size: int,
        sampler: DurationSampler,
        external_calls: ExternalCallStage,
        on_complete: CompletionCallback,
        on_task_phase: TaskPhaseCallback | None = None,
    ):
        if pool_size < 1:
            raise ValueError(f"pool_size must be >= 1, got {pool_size}")
        super().__init__(name, sampler, external_calls, on_complete, on_task_phase)
        self._slots = [ThreadSlot(id=i) for i in range(pool_size)]
        self.peak_busy_threads = 0
        self.total_busy_time = 0.0

    @property
    def pool_size(self) -> int:
        return len(self._slots)

    @property
    def slots(self) -> tuple[ThreadSlot, ...]:
        return tuple(self._slots)

    @property
    def busy_threads(self) -> int:
        return sum(1 for slot in self._slots if slot.busy)

    @property
    def idle_threads(self) -> int:
        return self.pool_size - self.busy_threads

    @property
    def utilization(self) -> float:
        return self.busy_threads / self.pool_size

    @property
    def stats(self) -> ThreadPoolStats:
        return ThreadPoolStats(
            tasks_submitted=self.tasks_submitted,
            tasks_completed=self.tasks_completed,
            duplicates_ignored=self.duplicates_ignored,
            peak_queue_depth=self.peak_queue_depth,
            peak_busy_threads=self.peak_busy_threads,
            total_busy_time=self.total_busy_time,
        )

    def tick(self) -> list[Event]:
        started: list[Event] = []
        for slot in self._slots:
            if not self._queue:
                break
            if slot.busy:
                continue
            task = self._queue.popleft()
            self._assign(slot, task)
            started.append(self._execute_event(task, slot))
        return started

    def _assign(self, slot: ThreadSlot, task: EngineTask) -> None:
        if slot.busy:
            raise SchedulingInvariantError(
                f"{self.name}: thread {slot.id} already runs request {slot.current_task.id}"
            )
        slot.busy = True
        slot.current_task = task
        slot.started_at = self.now
        task.started_at = self.now
        self._known.mark_assigned(task.id)
        self.peak_busy_threads = max(self.peak_busy_threads, self.busy_threads)
        self._set_phase(task, TaskPhase.PRE_CALL)
        logger.debug("[%s] Request %d assigned to thread %d", self.name, task.id, slot.id)

    def _execute_event(self, task: EngineTask, slot: ThreadSlot | None = None) -> Event:
        event = super()._execute_event(task)
        event.context["slot"] = slot.id if slot is not None else None
        return event

    def _slot_of(self, task: EngineTask) -> ThreadSlot | None:
        for slot in self._slots:
            if slot.current_task is task:
                return slot
        return None

    def _run_task(self, task: EngineTask, generation: int) -> Generator[float, None, None]:
        yield self._sampler.thread_until_call()
        if not self._is_live(generation):
            return

        # The thread blocks here; its slot stays busy.
        self._external_calls.add(task.id, self.request_type, self.now)
        self._set_phase(task, TaskPhase.DB_OPERATION)

        yield self._sampler.thread_external_call()
        if not self._is_live(generation):
            return

        self._external_calls.remove(task.id)
        slot = self._slot_of(task)
        if slot is not None:
            self.total_busy_time += (self.now - slot.started_at).to_seconds()
            slot.release()
        self._finish(task)

    def _tick_interval(self) -> float:
        return self._sampler.thread_pool_tick()

    def _clear_slots(self) -> None:
        for slot in self._slots:
            slot.release()
