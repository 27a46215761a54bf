"""What one call to Simulation.run() did."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class SimulationSummary:
    """Counters for a single run() call.

    Attributes:
        duration_s: Virtual time the clock moved forward.
        total_events_processed: Events delivered, cancelled ones excluded.
        events_per_second: Processed events per virtual second.
        wall_clock_seconds: Real time spent inside run().
        events_cancelled: Events dropped by cancel_pending() so far.
    """

    duration_s: float
    total_events_processed: int
    events_per_second: float
    wall_clock_seconds: float
    events_cancelled: int = 0

    def __str__(self) -> str:
        return (
            f"Advanced {self.duration_s:.2f}s of virtual time in "
            f"{self.wall_clock_seconds:.3f}s: {self.total_events_processed} events "
            f"({self.events_per_second:.1f}/s), {self.events_cancelled} cancelled"
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
