"""Discrete-event simulation loop driven by a virtual clock.

The Simulation owns the clock and the event heap. It pops events in
(time, insertion order), advances the clock to each event's time, invokes
it, and pushes whatever the handler produced. Nothing waits on real time:
tests advance the timeline directly with ``run(until=...)``.
"""

from __future__ import annotations

import logging
import time as _time
from collections.abc import Callable

from loopthreadsim.core.clock import Clock
from loopthreadsim.core.entity import Entity
from loopthreadsim.core.event import Event
from loopthreadsim.core.event_heap import EventHeap
from loopthreadsim.core.temporal import Instant
from loopthreadsim.instrumentation.summary import SimulationSummary

logger = logging.getLogger(__name__)

EventHook = Callable[[Event], None]


class Simulation:
    """Event loop over virtual time.

    Args:
        start_time: Initial clock value. Defaults to the epoch.
        end_time: Optional hard horizon; events after it are never processed.
        entities: Entities to attach to the clock up front.
    """

    def __init__(
        self,
        start_time: Instant = Instant.Epoch,
        end_time: Instant | None = None,
        entities: list[Entity] | None = None,
    ):
        self._clock = Clock(start_time)
        self._start_time = start_time
        self._end_time = end_time
        self._event_heap = EventHeap()
        self._entities: list[Entity] = []
        self._event_hooks: list[EventHook] = []
        self._events_processed = 0
        self._events_cancelled = 0

        for entity in entities or []:
            self.add_entity(entity)

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def now(self) -> Instant:
        return self._clock.now

    @property
    def pending(self) -> int:
        """Number of events still on the heap, cancelled ones included."""
        return self._event_heap.size()

    @property
    def events_processed(self) -> int:
        return self._events_processed

    @property
    def entities(self) -> list[Entity]:
        return list(self._entities)

    def add_entity(self, entity: Entity) -> None:
        entity.set_clock(self._clock)
        self._entities.append(entity)

    def remove_entity(self, entity: Entity) -> None:
        """Detach an entity; its clock is left in place."""
        if entity in self._entities:
            self._entities.remove(entity)

    def add_event_hook(self, hook: EventHook) -> None:
        """Register a function called after every processed event."""
        self._event_hooks.append(hook)

    def schedule(self, events: Event | list[Event]) -> None:
        self._event_heap.push(events)

    def cancel_pending(self) -> int:
        """Cancel and drop every scheduled event. Returns how many were live."""
        dropped = 0
        for event in self._event_heap.clear():
            if not event.cancelled:
                event.cancel()
                dropped += 1
        self._events_cancelled += dropped
        logger.debug("Cancelled %d pending event(s) at %r", dropped, self.now)
        return dropped

    def run(self, until: Instant | None = None) -> SimulationSummary:
        """Process events in time order.

        Without ``until`` the loop runs while any non-daemon event remains.
        With ``until`` every event at or before that instant is processed
        (daemon events included) and the clock is then moved to ``until``.
        """
        wall_start = _time.monotonic()
        run_start = self.now
        processed_before = self._events_processed
        horizon = until
        if self._end_time is not None and (horizon is None or self._end_time < horizon):
            horizon = self._end_time

        while self._event_heap.has_events():
            if horizon is None and not self._event_heap.has_primary_events():
                break
            if horizon is not None and self._event_heap.peek().time > horizon:
                break

            event = self._event_heap.pop()
            if event.cancelled:
                continue

            if event.time > self.now:
                self._clock.update(event.time)

            new_events = event.invoke()
            if new_events:
                self._event_heap.push(new_events)
            self._events_processed += 1

            for hook in self._event_hooks:
                hook(event)

        if horizon is not None and horizon > self.now:
            self._clock.update(horizon)

        processed = self._events_processed - processed_before
        duration_s = (self.now - run_start).to_seconds()
        summary = SimulationSummary(
            duration_s=duration_s,
            total_events_processed=processed,
            events_per_second=processed / duration_s if duration_s > 0 else 0.0,
            wall_clock_seconds=_time.monotonic() - wall_start,
            events_cancelled=self._events_cancelled,
        )
        logger.debug("Run finished at %r after %d event(s)", self.now, processed)
        return summary
