"""Virtual time for the simulation clock.

Instant stores time as integer nanoseconds so that repeated additions of
millisecond delays never drift. All engine timings are expressed in
milliseconds and converted at the boundary.
"""

from __future__ import annotations

from typing import Union

_NANOS_PER_SECOND = 1_000_000_000
_NANOS_PER_MILLI = 1_000_000


class Instant:
    """A point on the simulation timeline, in nanoseconds since the epoch."""

    __slots__ = ("nanoseconds",)

    Epoch: Instant

    def __init__(self, nanoseconds: int):
        self.nanoseconds = int(nanoseconds)

    @classmethod
    def from_seconds(cls, seconds: int | float) -> Instant:
        return cls(round(seconds * _NANOS_PER_SECOND))

    @classmethod
    def from_millis(cls, millis: int | float) -> Instant:
        return cls(round(millis * _NANOS_PER_MILLI))

    def to_seconds(self) -> float:
        return self.nanoseconds / _NANOS_PER_SECOND

    def to_millis(self) -> float:
        return self.nanoseconds / _NANOS_PER_MILLI

    def __add__(self, other: Union[Instant, int, float]) -> Instant:
        if isinstance(other, Instant):
            return Instant(self.nanoseconds + other.nanoseconds)
        if isinstance(other, (int, float)):
            return Instant(self.nanoseconds + round(other * _NANOS_PER_SECOND))
        return NotImplemented

    def __sub__(self, other: Union[Instant, int, float]) -> Instant:
        if isinstance(other, Instant):
            return Instant(self.nanoseconds - other.nanoseconds)
        if isinstance(other, (int, float)):
            return Instant(self.nanoseconds - round(other * _NANOS_PER_SECOND))
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds == other.nanoseconds

    def __hash__(self) -> int:
        return hash(self.nanoseconds)

    def __lt__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds < other.nanoseconds

    def __le__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds <= other.nanoseconds

    def __gt__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds > other.nanoseconds

    def __ge__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds >= other.nanoseconds

    def __repr__(self) -> str:
        return f"Instant({self.to_seconds():.6f}s)"


Instant.Epoch = Instant(0)
