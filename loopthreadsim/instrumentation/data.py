"""Sample storage for WorkerProbe.

Each Data holds one metric of one worker (say, busy threads on worker 0)
as (time_s, value) pairs in the order they were sampled.
"""

from __future__ import annotations

import math
from typing import Any

import pandas as pd

from loopthreadsim.core.temporal import Instant


class Data:
    """Time-ordered samples of a single numeric metric."""

    def __init__(self) -> None:
        self._samples: list[tuple[float, Any]] = []

    def __len__(self) -> int:
        return len(self._samples)

    def add_stat(self, value: Any, time: Instant) -> None:
        self._samples.append((time.to_seconds(), value))

    def clear(self) -> None:
        self._samples.clear()

    @property
    def values(self) -> list[tuple[float, Any]]:
        return self._samples

    def between(self, start_s: float, end_s: float) -> Data:
        """Samples taken in the half-open window [start_s, end_s)."""
        window = Data()
        window._samples = [(t, v) for t, v in self._samples if start_s <= t < end_s]
        return window

    def count(self) -> int:
        return len(self._samples)

    def mean(self) -> float:
        if not self._samples:
            return 0.0
        return sum(v for _, v in self._samples) / len(self._samples)

    def max(self) -> float:
        if not self._samples:
            return 0.0
        return max(v for _, v in self._samples)

    def percentile(self, p: float) -> float:
        """Linearly interpolated percentile for ``p`` in [0, 1]; 0.0 when empty."""
        ordered = sorted(v for _, v in self._samples)
        if not ordered:
            return 0.0
        p = min(max(p, 0.0), 1.0)
        rank = p * (len(ordered) - 1)
        below = math.floor(rank)
        above = min(below + 1, len(ordered) - 1)
        weight = rank - below
        return float(ordered[below] + (ordered[above] - ordered[below]) * weight)

    def to_series(self, name: str = "value") -> pd.Series:
        """The samples as a pandas Series indexed by ``time_s``."""
        index = pd.Index([t for t, _ in self._samples], name="time_s")
        return pd.Series([v for _, v in self._samples], index=index, name=name)
