"""Timestamped units of work for the simulation heap.

Engines schedule two shapes of work:

- plain events, whose target returns follow-up events straight away
  (dispatch ticks, batch submission, auto-stop);
- processes, whose target returns a generator. The generator is stepped by
  ProcessContinuation events, one per ``yield``, so a task's pre-call,
  external call and post-call phases read as straight-line code.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from itertools import count
from typing import TYPE_CHECKING, Any, Union

from loopthreadsim.core.temporal import Instant

if TYPE_CHECKING:
    from loopthreadsim.core.entity import Entity

logger = logging.getLogger(__name__)

# Creation order breaks ties between events due at the same instant.
_sequence = count()

CompletionHook = Callable[[Instant], Union[list["Event"], "Event", None]]


def _as_event_list(value: Any) -> list[Event]:
    if value is None:
        return []
    if isinstance(value, Event):
        return [value]
    if isinstance(value, list):
        return value
    logger.warning("Ignoring non-event result %r", value)
    return []


class Event:
    """Something that happens to ``target`` at ``time``.

    Events order by time, then by creation. Two timers that expire at the
    same instant therefore fire in the order they were armed, which keeps
    every engine queue FIFO.

    Attributes:
        time: Virtual time at which the event fires.
        event_type: Label, e.g. ``"worker-0.thread-pool.tick"``.
        target: Entity whose handle_event() receives the event.
        daemon: Daemon events never keep an open-ended run() going.
        context: Free-form payload; engines put the generation and task here.
        on_complete: One-shot hooks run once the event (or its process) ends.
    """

    __slots__ = (
        "_cancelled",
        "_sort_index",
        "context",
        "daemon",
        "event_type",
        "on_complete",
        "target",
        "time",
    )

    def __init__(
        self,
        time: Instant,
        event_type: str,
        target: Entity | None = None,
        *,
        daemon: bool = False,
        on_complete: list[CompletionHook] | None = None,
        context: dict[str, Any] | None = None,
    ):
        if target is None:
            raise ValueError(f"Event {event_type!r} has no target")

        self.time = time
        self.event_type = event_type
        self.target = target
        self.daemon = daemon
        self.context = {} if context is None else context
        self.on_complete = [] if on_complete is None else on_complete
        self._sort_index = next(_sequence)
        self._cancelled = False

    def __repr__(self) -> str:
        name = getattr(self.target, "name", type(self.target).__name__)
        return f"Event({self.time!r}, {self.event_type!r}, target={name})"

    def __lt__(self, other: Event) -> bool:
        return (self.time, self._sort_index) < (other.time, other._sort_index)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Leave the event on the heap but skip it when it comes up."""
        self._cancelled = True

    def add_completion_hook(self, hook: CompletionHook) -> None:
        self.on_complete.append(hook)

    def invoke(self) -> list[Event]:
        """Deliver the event and return whatever should be scheduled next."""
        result = self.target.handle_event(self)
        if isinstance(result, Generator):
            first_step = ProcessContinuation(
                time=self.time,
                event_type=self.event_type,
                target=self.target,
                daemon=self.daemon,
                on_complete=self.on_complete,
                context=self.context,
                process=result,
            )
            return first_step.invoke()
        return _as_event_list(result) + self._finish(self.time)

    def _finish(self, time: Instant) -> list[Event]:
        # Hooks are shared with every continuation of a process; run them once.
        hooks = list(self.on_complete)
        self.on_complete.clear()
        produced: list[Event] = []
        for hook in hooks:
            produced.extend(_as_event_list(hook(time)))
        return produced

    @staticmethod
    def once(
        time: Instant,
        event_type: str,
        fn: Callable[[Event], Any],
        *,
        daemon: bool = False,
        context: dict[str, Any] | None = None,
    ) -> Event:
        """An event that calls ``fn(event)`` when it fires."""
        from loopthreadsim.core.callback_entity import CallbackEntity

        return Event(
            time=time,
            event_type=event_type,
            target=CallbackEntity(f"once:{event_type}", fn),
            daemon=daemon,
            context=context,
        )


class ProcessContinuation(Event):
    """Steps a generator process forward by one ``yield``.

    ``yield delay`` resumes the process ``delay`` seconds later.
    ``yield delay, events`` also schedules ``events`` immediately.
    Whatever the generator returns is scheduled when it finishes.
    """

    __slots__ = ("process",)

    def __init__(
        self,
        time: Instant,
        event_type: str,
        target: Entity | None = None,
        *,
        daemon: bool = False,
        on_complete: list[CompletionHook] | None = None,
        context: dict[str, Any] | None = None,
        process: Generator | None = None,
    ):
        super().__init__(
            time,
            event_type,
            target,
            daemon=daemon,
            on_complete=on_complete,
            context=context,
        )
        self.process = process

    def invoke(self) -> list[Event]:
        try:
            step = next(self.process)
        except StopIteration as done:
            return _as_event_list(done.value) + self._finish(self.time)

        if isinstance(step, tuple):
            delay, side_effects = step[0], _as_event_list(step[1])
        elif isinstance(step, (int, float)):
            delay, side_effects = step, []
        else:
            logger.warning("%s yielded %r; resuming without delay", self.event_type, step)
            delay, side_effects = 0.0, []

        resume = ProcessContinuation(
            time=self.time + float(delay),
            event_type=self.event_type,
            target=self.target,
            daemon=self.daemon,
            on_complete=self.on_complete,
            context=self.context,
            process=self.process,
        )
        return [*side_effects, resume]
