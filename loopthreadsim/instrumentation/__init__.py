"""Observation helpers: summaries, probes, timelines and latency statistics."""

from loopthreadsim.instrumentation.summary import SimulationSummary
from loopthreadsim.instrumentation.data import Data
from loopthreadsim.instrumentation.probe import WorkerProbe
from loopthreadsim.instrumentation.recorder import TimelineEntry, TimelineRecorder
from loopthreadsim.instrumentation.statistics import RunStatistics

__all__ = [
    "Data",
    "RunStatistics",
    "SimulationSummary",
    "TimelineEntry",
    "TimelineRecorder",
    "WorkerProbe",
]
