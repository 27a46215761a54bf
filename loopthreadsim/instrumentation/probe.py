"""Periodic sampling of worker occupancy.

A WorkerProbe is a listener that, while a run is in progress, samples every
worker's snapshot at a fixed interval and stores each metric in a Data
container. Probe events are daemon events and are cancelled with the run.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import TYPE_CHECKING

from loopthreadsim.core.event import Event
from loopthreadsim.instrumentation.data import Data
from loopthreadsim.listeners import SimulationListener
from loopthreadsim.worker import WorkerSnapshot

if TYPE_CHECKING:
    from loopthreadsim.controller import SimulationController

logger = logging.getLogger(__name__)

METRICS = tuple(f.name for f in fields(WorkerSnapshot) if f.name != "worker_id")


class WorkerProbe(SimulationListener):
    """Samples WorkerSnapshot fields for every worker.

    Args:
        controller: Controller whose workers are sampled.
        interval_s: Virtual seconds between samples.
    """

    def __init__(self, controller: SimulationController, interval_s: float = 0.1):
        if interval_s <= 0:
            raise ValueError("Probe interval must be positive.")
        self._controller = controller
        self.interval_s = interval_s
        self._data: dict[tuple[int, str], Data] = {}
        controller.add_listener(self)

    def data(self, worker_id: int, metric: str) -> Data:
        """Samples of one metric for one worker."""
        if metric not in METRICS:
            raise KeyError(f"Unknown metric {metric!r}; expected one of {METRICS}")
        return self._data.setdefault((worker_id, metric), Data())

    def on_run_started(self, run_id: int) -> None:
        for data in self._data.values():
            data.clear()
        self._controller.simulation.schedule(self._probe_event(run_id, self._controller.now))

    def _probe_event(self, run_id: int, time) -> Event:
        return Event.once(
            time=time,
            event_type="probe",
            fn=lambda event: self._sample(run_id, event),
            daemon=True,
        )

    def _sample(self, run_id: int, event: Event) -> list[Event]:
        if run_id != self._controller.run_id or not self._controller.is_running:
            return []
        for snap in self._controller.snapshot():
            for metric in METRICS:
                self.data(snap.worker_id, metric).add_stat(getattr(snap, metric), event.time)
        return [self._probe_event(run_id, event.time + self.interval_s)]
