"""Engine-private wrappers around requests and the admission table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loopthreadsim.core.temporal import Instant
from loopthreadsim.model.request import Request


class SchedulingInvariantError(RuntimeError):
    """An engine was asked to do something its concurrency model forbids."""


class TaskPhase(str, Enum):
    """Fine-grained position of a task inside an engine."""

    QUEUED = "queued"
    PRE_CALL = "pre-call"
    DB_OPERATION = "db-operation"
    POST_CALL = "post-call"
    COMPLETED = "completed"


class TaskState(str, Enum):
    """Admission state tracked per request id."""

    QUEUED = "queued"
    ASSIGNED = "assigned"
    COMPLETED = "completed"


@dataclass
class EngineTask:
    """A request as seen by one engine.

    Attributes:
        request: The wrapped request.
        is_new_task: True until the task has been through the external call
            once. Only the event loop distinguishes first runs from resumes.
        phase: Current sub-phase inside the engine.
        queued_at: When the task first entered the engine's queue.
        returned_at: When it re-entered the queue after its external call.
        started_at: When it last took an execution slot.
    """

    request: Request
    queued_at: Instant
    is_new_task: bool = True
    phase: TaskPhase = TaskPhase.QUEUED
    returned_at: Instant | None = None
    started_at: Instant | None = None

    @property
    def id(self) -> int:
        return self.request.id


class KnownTasks:
    """Single source of truth for which request ids an engine has admitted.

    An id enters as QUEUED on first submission, moves to ASSIGNED when it
    takes a slot and to COMPLETED when the engine finishes it. Any id
    present in any state is refused by admit().
    """

    def __init__(self) -> None:
        self._states: dict[int, TaskState] = {}

    def __contains__(self, request_id: int) -> bool:
        return request_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def state(self, request_id: int) -> TaskState | None:
        return self._states.get(request_id)

    def admit(self, request_id: int) -> bool:
        if request_id in self._states:
            return False
        self._states[request_id] = TaskState.QUEUED
        return True

    def mark_assigned(self, request_id: int) -> None:
        self._states[request_id] = TaskState.ASSIGNED

    def mark_completed(self, request_id: int) -> None:
        self._states[request_id] = TaskState.COMPLETED

    def count(self, state: TaskState) -> int:
        return sum(1 for s in self._states.values() if s is state)

    def clear(self) -> None:
        self._states.clear()
