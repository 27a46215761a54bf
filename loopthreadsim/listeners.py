"""Observer interface between the engine and whatever presents it.

Subclass SimulationListener, override the callbacks you care about, and
register it with SimulationController.add_listener(). Callbacks run inline
on the simulation timeline; they must not block.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loopthreadsim.engines.external_calls import ExternalCall, ExternalCallAction
    from loopthreadsim.engines.task import TaskPhase
    from loopthreadsim.model.request import Request, RequestPhase, RequestStatus


class SimulationListener:
    """No-op base class for simulation observers."""

    def on_run_started(self, run_id: int) -> None:
        pass

    def on_run_stopped(self, run_id: int, reason: str) -> None:
        pass

    def on_submit(self, request: Request) -> None:
        pass

    def on_phase_change(self, request_id: int, phase: RequestPhase, status: RequestStatus) -> None:
        pass

    def on_task_phase(self, request_id: int, phase: TaskPhase) -> None:
        pass

    def on_external_call_change(
        self,
        request_id: int,
        action: ExternalCallAction,
        snapshot: ExternalCall | None,
    ) -> None:
        pass

    def on_complete(self, request_id: int) -> None:
        pass
