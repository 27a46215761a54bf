"""Run configuration with boundary clamping.

Out-of-range values are clamped into their allowed range rather than
rejected; this mirrors the bounded inputs of the interactive controls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MIN_WORKERS, MAX_WORKERS = 1, 8
MIN_POOL_SIZE, MAX_POOL_SIZE = 1, 16
MIN_SPEED, MAX_SPEED = 1, 10
MIN_BATCH, MAX_BATCH = 0, 50

DEFAULT_WORKERS = 1
DEFAULT_POOL_SIZE = 4
DEFAULT_SPEED = 5


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


def clamp_batch_size(count: int) -> int:
    """Clamp a per-type batch size to the accepted 0..50 range."""
    return clamp(count, MIN_BATCH, MAX_BATCH)


def speed_multiplier(simulation_speed: int) -> int:
    """Scale applied to every modelled duration: speed 10 is 1x, speed 1 is 10x."""
    return (MAX_SPEED + 1) - clamp(simulation_speed, MIN_SPEED, MAX_SPEED)


@dataclass(frozen=True)
class SimulationConfig:
    """Settings read when a run starts.

    Attributes:
        num_workers: Independent worker replicas (1..8).
        thread_pool_size: Thread slots per worker (1..16).
        simulation_speed: 1 (slowest) to 10 (fastest).
        external_call_capacity: Observational limit for the external call
            stage; None means unbounded. Never gates admission.
        seed: Seed for worker assignment and duration sampling.
    """

    num_workers: int = DEFAULT_WORKERS
    thread_pool_size: int = DEFAULT_POOL_SIZE
    simulation_speed: int = DEFAULT_SPEED
    external_call_capacity: int | None = None
    seed: int | None = None

    def __post_init__(self) -> None:
        self._clamp_field("num_workers", MIN_WORKERS, MAX_WORKERS)
        self._clamp_field("thread_pool_size", MIN_POOL_SIZE, MAX_POOL_SIZE)
        self._clamp_field("simulation_speed", MIN_SPEED, MAX_SPEED)
        if self.external_call_capacity is not None and self.external_call_capacity < 1:
            logger.debug(
                "external_call_capacity=%s treated as unbounded", self.external_call_capacity
            )
            object.__setattr__(self, "external_call_capacity", None)

    def _clamp_field(self, name: str, low: int, high: int) -> None:
        raw = getattr(self, name)
        value = clamp(raw, low, high)
        if value != raw:
            logger.debug("Clamped %s from %s to %s", name, raw, value)
        object.__setattr__(self, name, value)

    @property
    def speed_multiplier(self) -> int:
        return speed_multiplier(self.simulation_speed)
