"""Cooperative single-threaded event loop.

The loop has exactly one execution slot. A task holds it while it runs the
code before its await; at the await it leaves the slot and starts an
external call, letting the next queued task in. When the call returns the
task joins the back of the same FIFO queue and later runs the rest of its
code, again in the single slot.

    queued -> pre-call -> [slot freed] db-operation -> queued (resumed)
           -> post-call -> completed
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass

from loopthreadsim.core.event import Event
from loopthreadsim.engines.base import CompletionCallback, Engine, TaskPhaseCallback
from loopthreadsim.engines.external_calls import ExternalCallStage
from loopthreadsim.engines.task import EngineTask, SchedulingInvariantError, TaskPhase
from loopthreadsim.model.request import RequestType
from loopthreadsim.timing import DurationSampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventLoopStats:
    """Snapshot of event loop counters."""

    tasks_submitted: int
    tasks_started: int
    tasks_resumed: int
    tasks_completed: int
    duplicates_ignored: int
    peak_queue_depth: int


class EventLoopEngine(Engine):
    """Single-slot engine for async requests.

    Dispatch happens on a recurring tick every ``100 ms x speed multiplier``.
    A tick does nothing while the slot is occupied; otherwise it moves the
    head of the queue into the slot.
    """

    request_type = RequestType.ASYNC

    def __init__(
        self,
        name: str,
        sampler: DurationSampler,
        external_calls: ExternalCallStage,
        on_complete: CompletionCallback,
        on_task_phase: TaskPhaseCallback | None = None,
    ):
        super().__init__(name, sampler, external_calls, on_complete, on_task_phase)
        self._executing: EngineTask | None = None
        self._tasks_started = 0
        self._tasks_resumed = 0

    @property
    def executing(self) -> EngineTask | None:
        """The task currently holding the slot, if any."""
        return self._executing

    @property
    def executing_count(self) -> int:
        return 0 if self._executing is None else 1

    @property
    def stats(self) -> EventLoopStats:
        return EventLoopStats(
            tasks_submitted=self.tasks_submitted,
            tasks_started=self._tasks_started,
            tasks_resumed=self._tasks_resumed,
            tasks_completed=self.tasks_completed,
            duplicates_ignored=self.duplicates_ignored,
            peak_queue_depth=self.peak_queue_depth,
        )

    def report_external_call_return(self, task: EngineTask) -> None:
        """Put a task back in the queue after its external call finished."""
        task.is_new_task = False
        task.returned_at = self.now
        self._enqueue(task)

    def tick(self) -> list[Event]:
        if self._executing is not None or not self._queue:
            return []

        task = self._queue.popleft()
        self._occupy(task)
        return [self._execute_event(task)]

    def _occupy(self, task: EngineTask) -> None:
        if self._executing is not None:
            raise SchedulingInvariantError(
                f"{self.name}: request {task.id} dispatched while "
                f"request {self._executing.id} holds the slot"
            )
        self._executing = task
        task.started_at = self.now
        self._known.mark_assigned(task.id)
        if task.is_new_task:
            self._tasks_started += 1
            self._set_phase(task, TaskPhase.PRE_CALL)
        else:
            self._tasks_resumed += 1
            self._set_phase(task, TaskPhase.POST_CALL)
        logger.debug("[%s] Request %d took the slot (%s)", self.name, task.id, task.phase.value)

    def _vacate(self, task: EngineTask) -> None:
        if self._executing is task:
            self._executing = None

    def _run_task(self, task: EngineTask, generation: int) -> Generator[float, None, None]:
        if task.is_new_task:
            yield self._sampler.pre_call()
            if not self._is_live(generation):
                return

            # The await: give up the slot while the external call runs.
            self._vacate(task)
            self._external_calls.add(task.id, self.request_type, self.now)
            self._set_phase(task, TaskPhase.DB_OPERATION)

            yield self._sampler.event_loop_external_call()
            if not self._is_live(generation):
                return

            self._external_calls.remove(task.id)
            self.report_external_call_return(task)
        else:
            yield self._sampler.post_call()
            if not self._is_live(generation):
                return

            self._vacate(task)
            self._finish(task)

    def _tick_interval(self) -> float:
        return self._sampler.event_loop_tick()

    def _clear_slots(self) -> None:
        self._executing = None
