"""Per-type latency figures computed from a recorded timeline."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from loopthreadsim.instrumentation.recorder import TimelineRecorder

LATENCY_COLUMNS = ["request_type", "count", "mean_s", "p50_s", "p95_s", "max_s"]


@dataclass(frozen=True)
class RunStatistics:
    """End-to-end latencies (submit to complete) of finished requests.

    Attributes:
        latencies: One row per completed request with columns
            ``request_id``, ``request_type``, ``worker_id``, ``latency_s``.
    """

    latencies: pd.DataFrame

    @classmethod
    def from_recorder(cls, recorder: TimelineRecorder, run_id: int | None = None) -> RunStatistics:
        frame = recorder.to_dataframe()
        if run_id is not None:
            frame = frame[frame["run_id"] == run_id]

        submitted = frame[frame["kind"] == "submit"].set_index(["run_id", "request_id"])
        completed = frame[frame["kind"] == "complete"].set_index(["run_id", "request_id"])
        joined = submitted[["time_s", "request_type", "worker_id"]].join(
            completed[["time_s"]], rsuffix="_done", how="inner"
        )
        joined["latency_s"] = joined["time_s_done"] - joined["time_s"]
        latencies = joined.reset_index()[["request_id", "request_type", "worker_id", "latency_s"]]
        # Run-level rows carry no request id, which widens these columns to float.
        latencies = latencies.astype({"request_id": int, "worker_id": int})
        return cls(latencies=latencies)

    @property
    def completed(self) -> int:
        return len(self.latencies)

    def by_type(self) -> pd.DataFrame:
        """Latency aggregates per request type."""
        if self.latencies.empty:
            return pd.DataFrame(columns=LATENCY_COLUMNS)
        grouped = self.latencies.groupby("request_type")["latency_s"]
        table = pd.DataFrame(
            {
                "count": grouped.count(),
                "mean_s": grouped.mean(),
                "p50_s": grouped.quantile(0.5),
                "p95_s": grouped.quantile(0.95),
                "max_s": grouped.max(),
            }
        )
        return table.reset_index()[LATENCY_COLUMNS]

    def mean_latency(self, request_type: str) -> float:
        rows = self.latencies[self.latencies["request_type"] == request_type]
        if rows.empty:
            return 0.0
        return float(rows["latency_s"].mean())
