"""Modelled durations for every phase of a request.

All ranges are in milliseconds at speed 10. DurationSampler applies the
speed multiplier and returns seconds, which is what entity processes yield.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

Range = tuple[float, float]


@dataclass(frozen=True)
class TimingModel:
    """Duration ranges in milliseconds, sampled uniformly.

    Attributes:
        pre_call: Event loop work before the await.
        event_loop_external_call: External call made from the event loop.
        post_call: Event loop work after the task resumes.
        thread_until_call: Time a thread runs before it reaches the blocking call.
        thread_external_call: Blocking external call made from a thread.
        event_loop_tick: Interval between event loop dispatch attempts (scaled).
        thread_pool_tick: Interval between slot assignment passes (not scaled).
        batch_delay: Delay between start() and the initial batch submission.
        auto_stop_delay: Grace period after the last completion before stopping.
    """

    pre_call: Range = (300.0, 500.0)
    event_loop_external_call: Range = (600.0, 1000.0)
    post_call: Range = (200.0, 400.0)
    thread_until_call: Range = (800.0, 800.0)
    thread_external_call: Range = (800.0, 1400.0)
    event_loop_tick: float = 100.0
    thread_pool_tick: float = 500.0
    batch_delay: float = 100.0
    auto_stop_delay: float = 1500.0

    def __post_init__(self) -> None:
        for name in (
            "pre_call",
            "event_loop_external_call",
            "post_call",
            "thread_until_call",
            "thread_external_call",
        ):
            low, high = getattr(self, name)
            if low < 0 or high < low:
                raise ValueError(f"Invalid {name} range: {(low, high)}")
        if self.event_loop_tick <= 0 or self.thread_pool_tick <= 0:
            raise ValueError("Tick intervals must be positive")

    @classmethod
    def constant(
        cls,
        pre_call: float = 400.0,
        event_loop_external_call: float = 800.0,
        post_call: float = 300.0,
        thread_until_call: float = 800.0,
        thread_external_call: float = 1100.0,
        **kwargs: float,
    ) -> TimingModel:
        """A model with no randomness, handy for reproducible walkthroughs."""
        return cls(
            pre_call=(pre_call, pre_call),
            event_loop_external_call=(event_loop_external_call, event_loop_external_call),
            post_call=(post_call, post_call),
            thread_until_call=(thread_until_call, thread_until_call),
            thread_external_call=(thread_external_call, thread_external_call),
            **kwargs,
        )


class DurationSampler:
    """Draws scaled durations from a TimingModel.

    Args:
        model: Duration ranges.
        multiplier: Speed multiplier (11 - simulation speed).
        rng: Random source; pass a seeded instance for reproducible runs.
    """

    def __init__(self, model: TimingModel, multiplier: int, rng: random.Random | None = None):
        self.model = model
        self.multiplier = multiplier
        self._rng = rng or random.Random()

    def _scaled(self, millis: float) -> float:
        return millis * self.multiplier / 1000.0

    def _draw(self, bounds: Range) -> float:
        low, high = bounds
        return self._scaled(self._rng.uniform(low, high))

    def pre_call(self) -> float:
        return self._draw(self.model.pre_call)

    def event_loop_external_call(self) -> float:
        return self._draw(self.model.event_loop_external_call)

    def post_call(self) -> float:
        return self._draw(self.model.post_call)

    def thread_until_call(self) -> float:
        return self._draw(self.model.thread_until_call)

    def thread_external_call(self) -> float:
        return self._draw(self.model.thread_external_call)

    def event_loop_tick(self) -> float:
        return self._scaled(self.model.event_loop_tick)

    def thread_pool_tick(self) -> float:
        return self.model.thread_pool_tick / 1000.0
