"""Function-backed entity used by Event.once()."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loopthreadsim.core.entity import Entity
from loopthreadsim.core.event import Event


class CallbackEntity(Entity):
    """Runs ``fn(event)`` for every event it receives.

    The controller schedules its batch submission and auto-stop timers this
    way, and probes their sampling ticks.
    """

    def __init__(self, name: str, fn: Callable[[Event], Any]):
        super().__init__(name)
        self._fn = fn

    def handle_event(self, event: Event) -> list[Event] | Event | None:
        result = self._fn(event)
        if isinstance(result, (list, Event)):
            return result
        return None
