"""Timeline of everything a run reported, exportable as a DataFrame."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

import pandas as pd

from loopthreadsim.listeners import SimulationListener

if TYPE_CHECKING:
    from loopthreadsim.controller import SimulationController
    from loopthreadsim.engines.external_calls import ExternalCall, ExternalCallAction
    from loopthreadsim.engines.task import TaskPhase
    from loopthreadsim.model.request import Request, RequestPhase, RequestStatus

COLUMNS = ["time_s", "run_id", "request_id", "kind", "value", "request_type", "worker_id"]


@dataclass(frozen=True)
class TimelineEntry:
    time_s: float
    run_id: int
    request_id: int | None
    kind: str
    value: str
    request_type: str | None = None
    worker_id: int | None = None


class TimelineRecorder(SimulationListener):
    """Records every listener callback with the virtual time it happened at.

    Entry kinds: ``run``, ``submit``, ``phase``, ``task``, ``external``,
    ``complete``.
    """

    def __init__(self, controller: SimulationController):
        self._controller = controller
        self._entries: list[TimelineEntry] = []
        self._requests: dict[int, tuple[str, int]] = {}
        controller.add_listener(self)

    @property
    def entries(self) -> list[TimelineEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._requests.clear()

    def _record(self, request_id: int | None, kind: str, value: str) -> None:
        request_type, worker_id = self._requests.get(request_id, (None, None))
        self._entries.append(
            TimelineEntry(
                time_s=self._controller.now.to_seconds(),
                run_id=self._controller.run_id,
                request_id=request_id,
                kind=kind,
                value=value,
                request_type=request_type,
                worker_id=worker_id,
            )
        )

    def on_run_started(self, run_id: int) -> None:
        self._requests.clear()
        self._record(None, "run", "started")

    def on_run_stopped(self, run_id: int, reason: str) -> None:
        self._record(None, "run", reason)

    def on_submit(self, request: Request) -> None:
        self._requests[request.id] = (request.type.value, request.worker_id)
        self._record(request.id, "submit", request.phase.value)

    def on_phase_change(self, request_id: int, phase: RequestPhase, status: RequestStatus) -> None:
        self._record(request_id, "phase", phase.value)

    def on_task_phase(self, request_id: int, phase: TaskPhase) -> None:
        self._record(request_id, "task", phase.value)

    def on_external_call_change(
        self, request_id: int, action: ExternalCallAction, snapshot: ExternalCall | None
    ) -> None:
        self._record(request_id, "external", action.value)

    def on_complete(self, request_id: int) -> None:
        self._record(request_id, "complete", "completed")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def for_request(self, request_id: int) -> list[TimelineEntry]:
        return [e for e in self._entries if e.request_id == request_id]

    def values(self, kind: str, request_id: int | None = None) -> list[str]:
        return [
            e.value
            for e in self._entries
            if e.kind == kind and (request_id is None or e.request_id == request_id)
        ]

    def request_ids(self, kind: str, value: str | None = None) -> list[int]:
        """Request ids in the order they reported ``kind`` (and ``value``)."""
        return [
            e.request_id
            for e in self._entries
            if e.kind == kind and (value is None or e.value == value)
        ]

    def completion_order(self) -> list[int]:
        return self.request_ids("complete")

    def to_dataframe(self) -> pd.DataFrame:
        if not self._entries:
            return pd.DataFrame(columns=COLUMNS)
        return pd.DataFrame([asdict(e) for e in self._entries], columns=COLUMNS)
