"""Request records and the per-run id counter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loopthreadsim.core.temporal import Instant


class RequestType(str, Enum):
    """How a request is handled: cooperatively (async) or on a thread (sync)."""

    ASYNC = "async"
    SYNC = "sync"


class RequestPhase(str, Enum):
    """Coarse, presentation-facing location of a request."""

    QUEUED = "queued"
    EVENT_LOOP = "event-loop"
    THREAD_POOL = "thread-pool"


class RequestStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"


@dataclass
class Request:
    """A unit of work submitted to a worker.

    Attributes:
        id: Unique within a run, assigned by RequestIdGenerator.
        type: Async or sync; never changes after creation.
        worker_id: Index of the worker that owns this request.
        start_time: Creation time.
        phase: Coarse phase, advanced by the worker when it routes the request.
        status: Pending until routed, processing afterwards.
    """

    id: int
    type: RequestType
    worker_id: int
    start_time: Instant
    phase: RequestPhase = RequestPhase.QUEUED
    status: RequestStatus = RequestStatus.PENDING

    def __post_init__(self) -> None:
        self.type = RequestType(self.type)


class RequestIdGenerator:
    """Monotonic id source owned by a single simulation run.

    The first id handed out after construction or reset() is 1.
    """

    def __init__(self) -> None:
        self._last = 0

    def next_id(self) -> int:
        self._last += 1
        return self._last

    @property
    def last_issued(self) -> int:
        return self._last

    def reset(self) -> None:
        self._last = 0
