"""Core simulation engine components."""

from loopthreadsim.core.callback_entity import CallbackEntity
from loopthreadsim.core.clock import Clock
from loopthreadsim.core.entity import Entity, SimReturn, SimYield
from loopthreadsim.core.event import Event, ProcessContinuation
from loopthreadsim.core.event_heap import EventHeap
from loopthreadsim.core.simulation import Simulation
from loopthreadsim.core.temporal import Instant

__all__ = [
    "CallbackEntity",
    "Clock",
    "Entity",
    "Event",
    "EventHeap",
    "Instant",
    "ProcessContinuation",
    "SimReturn",
    "SimYield",
    "Simulation",
]
