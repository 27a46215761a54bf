"""Actors on the simulation timeline.

Engines, the controller's one-shot callbacks and probes are all Entities:
objects that read the shared clock and react to events addressed to them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Generator
from typing import TYPE_CHECKING, Union

from loopthreadsim.core.event import Event

if TYPE_CHECKING:
    from loopthreadsim.core.clock import Clock
    from loopthreadsim.core.temporal import Instant

SimYield = Union[float, tuple[float, list[Event]]]
"""What a process may yield: a delay in seconds, or a delay plus events to schedule now."""

SimReturn = Union[list[Event], Event, None]
"""What a process may return once it finishes."""


class Entity(ABC):
    """Something that owns state on the timeline and handles events.

    A Simulation hands every registered entity its clock, so ``now`` is only
    usable after Simulation.add_entity().

    Attributes:
        name: Label used in logs and as a prefix for event types.
    """

    def __init__(self, name: str):
        self.name = name
        self._clock: Clock | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def set_clock(self, clock: Clock) -> None:
        self._clock = clock

    @property
    def now(self) -> Instant:
        if self._clock is None:
            raise RuntimeError(f"{self.name} has no clock; register it with a Simulation first")
        return self._clock.now

    @abstractmethod
    def handle_event(
        self, event: Event
    ) -> Generator[SimYield, None, SimReturn] | list[Event] | Event | None:
        """React to ``event``.

        Return follow-up events directly, or a generator to run a timed
        process: each ``yield`` pauses it for that many virtual seconds.
        """
        raise NotImplementedError
