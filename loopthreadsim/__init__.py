"""Discrete-event simulator contrasting an event loop with a thread pool.

Async requests run on a single-slot cooperative event loop that releases
its slot while awaiting an external call; sync requests occupy a thread
from a bounded pool for their whole lifetime, external call included.
"""

import logging

from loopthreadsim.config import SimulationConfig, speed_multiplier
from loopthreadsim.controller import SimulationController
from loopthreadsim.core import (
    CallbackEntity,
    Entity,
    Event,
    EventHeap,
    Instant,
    ProcessContinuation,
    Simulation,
)
from loopthreadsim.engines import (
    EngineTask,
    EventLoopEngine,
    ExternalCall,
    ExternalCallAction,
    ExternalCallStage,
    SchedulingInvariantError,
    TaskPhase,
    TaskState,
    ThreadPoolEngine,
    ThreadSlot,
)
from loopthreadsim.instrumentation import (
    Data,
    RunStatistics,
    SimulationSummary,
    TimelineRecorder,
    WorkerProbe,
)
from loopthreadsim.listeners import SimulationListener
from loopthreadsim.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from loopthreadsim.model import (
    Request,
    RequestIdGenerator,
    RequestPhase,
    RequestRegistry,
    RequestStatus,
    RequestType,
)
from loopthreadsim.timing import DurationSampler, TimingModel
from loopthreadsim.worker import Worker, WorkerSnapshot

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CallbackEntity",
    "Data",
    "DurationSampler",
    "EngineTask",
    "Entity",
    "Event",
    "EventHeap",
    "EventLoopEngine",
    "ExternalCall",
    "ExternalCallAction",
    "ExternalCallStage",
    "Instant",
    "ProcessContinuation",
    "Request",
    "RequestIdGenerator",
    "RequestPhase",
    "RequestRegistry",
    "RequestStatus",
    "RequestType",
    "RunStatistics",
    "SchedulingInvariantError",
    "Simulation",
    "SimulationConfig",
    "SimulationController",
    "SimulationListener",
    "SimulationSummary",
    "TaskPhase",
    "TaskState",
    "ThreadPoolEngine",
    "ThreadSlot",
    "TimelineRecorder",
    "TimingModel",
    "Worker",
    "WorkerProbe",
    "WorkerSnapshot",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
    "speed_multiplier",
]
