"""Scheduling engines: the event loop, the thread pool and the external call stage."""

from loopthreadsim.engines.base import Engine
from loopthreadsim.engines.event_loop import EventLoopEngine, EventLoopStats
from loopthreadsim.engines.external_calls import (
    ExternalCall,
    ExternalCallAction,
    ExternalCallStage,
)
from loopthreadsim.engines.task import (
    EngineTask,
    KnownTasks,
    SchedulingInvariantError,
    TaskPhase,
    TaskState,
)
from loopthreadsim.engines.thread_pool import ThreadPoolEngine, ThreadPoolStats, ThreadSlot

__all__ = [
    "Engine",
    "EngineTask",
    "EventLoopEngine",
    "EventLoopStats",
    "ExternalCall",
    "ExternalCallAction",
    "ExternalCallStage",
    "KnownTasks",
    "SchedulingInvariantError",
    "TaskPhase",
    "TaskState",
    "ThreadPoolEngine",
    "ThreadPoolStats",
    "ThreadSlot",
]
