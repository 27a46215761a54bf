"""Shared machinery for the two scheduling engines.

An engine is an Entity that receives two kinds of events:

- ``<name>.tick``: recurring dispatch pass; the engine moves queued tasks
  into free slots and reschedules the next tick.
- ``<name>.execute``: starts the generator process that walks one task
  through its timed phases.

Every event carries the engine generation it was created under. reset()
bumps the generation, so timers that survive a stop or a reconfiguration
find themselves stale and do nothing.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections import deque
from collections.abc import Callable, Generator

from loopthreadsim.core.entity import Entity
from loopthreadsim.core.event import Event
from loopthreadsim.engines.external_calls import ExternalCallStage
from loopthreadsim.engines.task import EngineTask, KnownTasks, TaskPhase
from loopthreadsim.model.request import Request, RequestType
from loopthreadsim.timing import DurationSampler

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[int, RequestType], None]
TaskPhaseCallback = Callable[[EngineTask, TaskPhase], None]


class Engine(Entity):
    """Base class for the event loop and thread pool engines.

    Args:
        name: Entity name, also the prefix of the event types it schedules.
        sampler: Source of scaled durations.
        external_calls: The worker's external call stage.
        on_complete: Called once per finished task with (request_id, type).
        on_task_phase: Optional observer of task sub-phase changes.
    """

    request_type: RequestType

    def __init__(
        self,
        name: str,
        sampler: DurationSampler,
        external_calls: ExternalCallStage,
        on_complete: CompletionCallback,
        on_task_phase: TaskPhaseCallback | None = None,
    ):
        super().__init__(name)
        self._sampler = sampler
        self._external_calls = external_calls
        self._on_complete = on_complete
        self._on_task_phase = on_task_phase
        self._queue: deque[EngineTask] = deque()
        self._known = KnownTasks()
        self._generation = 0
        self.peak_queue_depth = 0
        self.tasks_submitted = 0
        self.tasks_completed = 0
        self.duplicates_ignored = 0

    @property
    def tick_event_type(self) -> str:
        return f"{self.name}.tick"

    @property
    def execute_event_type(self) -> str:
        return f"{self.name}.execute"

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def queue_depth(self) -> int:
        return len(self._queue)

    @property
    def queued_ids(self) -> list[int]:
        """Request ids in queue order, head first."""
        return [task.id for task in self._queue]

    def is_known(self, request_id: int) -> bool:
        return request_id in self._known

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> list[Event]:
        """Return the first tick for the current generation."""
        return [self._tick_event(self._tick_interval())]

    def reset(self) -> None:
        """Drop all queued and executing work and invalidate pending timers."""
        self._generation += 1
        self._queue.clear()
        self._known.clear()
        self._clear_slots()
        self.peak_queue_depth = 0
        logger.debug("[%s] Reset to generation %d", self.name, self._generation)

    def _is_live(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug(
                "[%s] Stale callback from generation %d ignored (now %d)",
                self.name,
                generation,
                self._generation,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def submit(self, request: Request) -> bool:
        """Queue a request unless this engine has already seen its id.

        Returns:
            True if the request was queued, False for a duplicate.
        """
        if not self._known.admit(request.id):
            self.duplicates_ignored += 1
            logger.debug("[%s] Duplicate submission of request %d ignored", self.name, request.id)
            return False

        self.tasks_submitted += 1
        self._enqueue(EngineTask(request=request, queued_at=self.now))
        return True

    def _enqueue(self, task: EngineTask) -> None:
        task.phase = TaskPhase.QUEUED
        self._queue.append(task)
        self.peak_queue_depth = max(self.peak_queue_depth, len(self._queue))
        logger.debug("[%s] Queued request %d (depth=%d)", self.name, task.id, len(self._queue))

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle_event(self, event: Event) -> Generator | list[Event] | None:
        generation = event.context.get("generation")
        if not self._is_live(generation):
            return None

        if event.event_type == self.tick_event_type:
            started = self.tick()
            if generation == self._generation:
                started.append(self._tick_event(self._tick_interval()))
            return started

        if event.event_type == self.execute_event_type:
            return self._run_task(event.context["task"], generation)

        logger.warning("[%s] Unexpected event type %s", self.name, event.event_type)
        return None

    def _tick_event(self, delay_s: float) -> Event:
        return Event(
            time=self.now + delay_s,
            event_type=self.tick_event_type,
            target=self,
            context={"generation": self._generation},
        )

    def _execute_event(self, task: EngineTask) -> Event:
        return Event(
            time=self.now,
            event_type=self.execute_event_type,
            target=self,
            context={"generation": self._generation, "task": task},
        )

    def _set_phase(self, task: EngineTask, phase: TaskPhase) -> None:
        task.phase = phase
        if self._on_task_phase is not None:
            self._on_task_phase(task, phase)

    def _finish(self, task: EngineTask) -> None:
        self._known.mark_completed(task.id)
        self.tasks_completed += 1
        self._set_phase(task, TaskPhase.COMPLETED)
        logger.debug("[%s] Request %d completed", self.name, task.id)
        self._on_complete(task.id, self.request_type)

    # ------------------------------------------------------------------
    # Engine specifics
    # ------------------------------------------------------------------

    @abstractmethod
    def tick(self) -> list[Event]:
        """Move queued tasks into free slots; return their execute events."""
        raise NotImplementedError

    @abstractmethod
    def _run_task(self, task: EngineTask, generation: int) -> Generator:
        raise NotImplementedError

    @abstractmethod
    def _tick_interval(self) -> float:
        raise NotImplementedError

    @abstractmethod
    def _clear_slots(self) -> None:
        raise NotImplementedError
