import heapq
from typing import Union

from loopthreadsim.core.event import Event


class EventHeap:
    def __init__(self, events: list[Event] | None = None):
        """Store comparable Events directly on the heap.

        Event implements ordering by (time, insertion order), so there's no
        need to store (time, event) tuples.
        """
        self._heap = list(events) if events else []
        heapq.heapify(self._heap)
        self._primary_event_count = sum(1 for e in self._heap if not e.daemon)

    def push(self, events: Union[Event, list[Event]]) -> None:
        """Push an Event or a list of Events onto the heap."""
        if isinstance(events, list):
            for event in events:
                self._push_one(event)
        else:
            self._push_one(events)

    def _push_one(self, event: Event) -> None:
        heapq.heappush(self._heap, event)
        if not event.daemon:
            self._primary_event_count += 1

    def pop(self) -> Event:
        event = heapq.heappop(self._heap)
        if not event.daemon:
            self._primary_event_count -= 1
        return event

    def peek(self) -> Event:
        return self._heap[0]

    def has_events(self) -> bool:
        return bool(self._heap)

    def has_primary_events(self) -> bool:
        return self._primary_event_count > 0

    def clear(self) -> list[Event]:
        """Remove every event and return them in heap order."""
        drained = sorted(self._heap)
        self._heap.clear()
        self._primary_event_count = 0
        return drained

    def size(self) -> int:
        return len(self._heap)
