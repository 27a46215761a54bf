"""Latency-only external call stage ("DB operations").

Both engines of a worker report into the same stage. The stage never
rejects and never delays anything; it exists so the set of in-flight
external calls can be observed. An optional capacity turns on pool-style
reporting (utilization, exhaustion) without gating admission.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from loopthreadsim.core.temporal import Instant
from loopthreadsim.model.request import RequestType

logger = logging.getLogger(__name__)


class ExternalCallAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class ExternalCall:
    """One in-flight external call."""

    id: int
    request_type: RequestType
    started_at: Instant
    worker_id: int


ExternalCallListener = Callable[[int, ExternalCallAction, "ExternalCall | None"], None]


class ExternalCallStage:
    """Unbounded set of in-flight external calls for one worker.

    Args:
        worker_id: Owning worker, copied onto every entry.
        capacity: Observational limit of at least 1; None means unbounded.
            SimulationConfig maps non-positive values to None before they
            reach the stage.
        listener: Called after every add and remove with the affected entry.
    """

    def __init__(
        self,
        worker_id: int = 0,
        capacity: int | None = None,
        listener: ExternalCallListener | None = None,
    ):
        if capacity is not None and capacity < 1:
            raise ValueError(f"capacity must be >= 1 or None, got {capacity}")
        self.worker_id = worker_id
        self.capacity = capacity
        self._listener = listener
        self._calls: dict[int, ExternalCall] = {}
        self.peak = 0
        self.total_started = 0
        self.over_capacity = 0

    def __len__(self) -> int:
        return len(self._calls)

    def __contains__(self, call_id: int) -> bool:
        return call_id in self._calls

    def add(self, call_id: int, request_type: RequestType, started_at: Instant) -> ExternalCall:
        entry = ExternalCall(
            id=call_id,
            request_type=RequestType(request_type),
            started_at=started_at,
            worker_id=self.worker_id,
        )
        self._calls[call_id] = entry
        self.total_started += 1
        self.peak = max(self.peak, len(self._calls))
        if self.capacity is not None and len(self._calls) > self.capacity:
            self.over_capacity += 1
            logger.debug(
                "Worker %d external calls %d exceed capacity %d",
                self.worker_id,
                len(self._calls),
                self.capacity,
            )
        if self._listener is not None:
            self._listener(call_id, ExternalCallAction.ADD, entry)
        return entry

    def remove(self, call_id: int) -> ExternalCall | None:
        entry = self._calls.pop(call_id, None)
        if entry is None:
            logger.debug("Remove for unknown external call %s ignored", call_id)
            return None
        if self._listener is not None:
            self._listener(call_id, ExternalCallAction.REMOVE, entry)
        return entry

    def snapshot(self) -> list[ExternalCall]:
        return list(self._calls.values())

    @property
    def active(self) -> int:
        return len(self._calls)

    @property
    def utilization(self) -> float | None:
        """Fraction of capacity in use, or None when unbounded."""
        if self.capacity is None:
            return None
        return len(self._calls) / self.capacity

    @property
    def is_exhausted(self) -> bool:
        return self.capacity is not None and len(self._calls) >= self.capacity

    def clear(self) -> None:
        """Drop every entry without notifying the listener."""
        self._calls.clear()
