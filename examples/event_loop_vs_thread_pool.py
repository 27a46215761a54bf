"""Event loop vs thread pool under the same external-call latency.

Submits a batch of async and sync requests to one or more workers and
compares how long each kind takes end to end. Both kinds spend most of
their time waiting on the same latency-only external call; the difference
is what happens to the execution resource while they wait.

## Architecture Diagram

```
                              WORKER
    ┌──────────────────────────────────────────────────────────────┐
    │                                                              │
    │  async ──► [ FIFO ] ──► ( 1 slot ) ── await ──┐              │
    │               ▲          pre-call             │              │
    │               │          post-call            ▼              │
    │               └──────── resumed ◄──── [ external calls ]     │
    │                                               ▲              │
    │  sync  ──► [ FIFO ] ──► ( N threads ) ── blocking call       │
    │                          slot held until the call returns    │
    │                                                              │
    └──────────────────────────────────────────────────────────────┘
```

With a small pool, sync latency grows in steps of one full request
lifetime per extra round of threads, while async latency grows only with
the (short) CPU phases queued ahead of each request.

Run:
    python examples/event_loop_vs_thread_pool.py --async 20 --sync 20 --pool-size 4
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path

from loopthreadsim import (
    RunStatistics,
    SimulationConfig,
    SimulationController,
    TimelineRecorder,
    TimingModel,
    WorkerProbe,
)


# =============================================================================
# Simulation
# =============================================================================


@dataclass
class ComparisonResult:
    """Everything collected from one comparison run."""

    config: SimulationConfig
    controller: SimulationController
    recorder: TimelineRecorder
    probe: WorkerProbe
    statistics: RunStatistics
    end_time_s: float


def run_comparison(
    async_requests: int = 20,
    sync_requests: int = 20,
    pool_size: int = 4,
    num_workers: int = 1,
    speed: int = 10,
    arrivals: int = 0,
    seed: int | None = 42,
    probe_interval_s: float = 0.1,
) -> ComparisonResult:
    """Run one batch to completion and collect its timeline.

    Args:
        async_requests: Async requests in the initial batch.
        sync_requests: Sync requests in the initial batch.
        pool_size: Threads per worker.
        num_workers: Independent workers; requests are spread at random.
        speed: 1 (slowest) to 10 (fastest).
        arrivals: Extra requests of random type added one by one after the batch.
        seed: Seed for assignment, durations and arrivals. None for random.
        probe_interval_s: Sampling interval for queue and thread occupancy.
    """
    config = SimulationConfig(
        num_workers=num_workers,
        thread_pool_size=pool_size,
        simulation_speed=speed,
        seed=seed,
    )
    controller = SimulationController(config=config, timing=TimingModel())
    recorder = TimelineRecorder(controller)
    probe = WorkerProbe(controller, interval_s=probe_interval_s)

    controller.start(async_requests=async_requests, sync_requests=sync_requests)

    rng = random.Random(seed)
    for _ in range(arrivals):
        controller.advance(rng.uniform(0.0, 0.5 * config.speed_multiplier))
        if not controller.is_running:
            break
        controller.add_request(rng.choice(["async", "sync"]))

    controller.run()

    return ComparisonResult(
        config=controller.config,
        controller=controller,
        recorder=recorder,
        probe=probe,
        statistics=RunStatistics.from_recorder(recorder, run_id=controller.run_id),
        end_time_s=controller.now.to_seconds(),
    )


# =============================================================================
# Reporting
# =============================================================================


def print_summary(result: ComparisonResult) -> None:
    config = result.config
    print("\n" + "=" * 70)
    print("EVENT LOOP vs THREAD POOL")
    print("=" * 70)
    print(f"\nConfiguration:")
    print(f"  Workers: {config.num_workers}")
    print(f"  Thread pool size: {config.thread_pool_size}")
    print(f"  Speed: {config.simulation_speed} (durations x{config.speed_multiplier})")
    print(f"  Run ended at: {result.end_time_s:.2f}s (virtual)")

    table = result.statistics.by_type()
    print(f"\nLatency by request type ({result.statistics.completed} completed):")
    if table.empty:
        print("  (no requests completed)")
    for row in table.to_dict("records"):
        print(
            f"  {row['request_type']:>5}: n={row['count']:<3} mean={row['mean_s']:.2f}s "
            f"p50={row['p50_s']:.2f}s p95={row['p95_s']:.2f}s max={row['max_s']:.2f}s"
        )

    for worker in result.controller.workers:
        stage = worker.external_calls
        print(f"\nWorker {worker.worker_id}:")
        print(f"  Peak event loop queue: {worker.event_loop.stats.peak_queue_depth}")
        print(f"  Peak busy threads: {worker.thread_pool.peak_busy_threads}/{worker.thread_pool.pool_size}")
        print(f"  Peak concurrent external calls: {stage.peak} ({stage.total_started} total)")

    print("\n" + "=" * 70)


def visualize_results(result: ComparisonResult, output_dir: Path) -> list[Path]:
    """Write occupancy and latency figures; returns the written paths."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []

    # Figure 1: occupancy over time, one column per worker
    workers = result.controller.workers
    fig, axes = plt.subplots(3, len(workers), figsize=(7 * len(workers), 10), sharex=True, squeeze=False)
    for col, worker in enumerate(workers):
        wid = worker.worker_id
        panels = [
            (["event_loop_queue", "thread_pool_queue"], "Queue depth"),
            (["event_loop_executing", "busy_threads"], "Executing"),
            (["external_calls"], "In-flight external calls"),
        ]
        for row, (metrics, ylabel) in enumerate(panels):
            ax = axes[row][col]
            for metric in metrics:
                data = result.probe.data(wid, metric)
                times = [t for t, _ in data.values]
                values = [v for _, v in data.values]
                ax.step(times, values, where="post", label=metric)
            if row == 1:
                ax.axhline(y=worker.thread_pool.pool_size, color="r", linestyle="--", alpha=0.5, label="pool size")
            ax.set_ylabel(ylabel)
            ax.grid(True, alpha=0.3)
            ax.legend(loc="upper right")
        axes[0][col].set_title(f"Worker {wid}")
        axes[-1][col].set_xlabel("Time (s)")
    fig.tight_layout()
    path = output_dir / "occupancy.png"
    fig.savefig(path, dpi=150)
    plt.close(fig)
    written.append(path)

    # Figure 2: latency distribution per type
    latencies = result.statistics.latencies
    fig, ax = plt.subplots(figsize=(10, 6))
    for request_type, color in (("async", "tab:blue"), ("sync", "tab:orange")):
        values = latencies[latencies["request_type"] == request_type]["latency_s"]
        if len(values):
            ax.hist(values, bins=20, alpha=0.6, color=color, label=f"{request_type} (n={len(values)})")
    ax.set_xlabel("End-to-end latency (s)")
    ax.set_ylabel("Requests")
    ax.set_title("Latency by request type")
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    path = output_dir / "latency.png"
    fig.savefig(path, dpi=150)
    plt.close(fig)
    written.append(path)

    return written


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    import argparse

    from loopthreadsim import configure_from_env

    parser = argparse.ArgumentParser(description="Event loop vs thread pool comparison")
    parser.add_argument("--async", dest="async_requests", type=int, default=20, help="Async requests in the batch (0-50)")
    parser.add_argument("--sync", dest="sync_requests", type=int, default=20, help="Sync requests in the batch (0-50)")
    parser.add_argument("--pool-size", type=int, default=4, help="Threads per worker (1-16)")
    parser.add_argument("--workers", type=int, default=1, help="Number of workers (1-8)")
    parser.add_argument("--speed", type=int, default=10, help="Simulation speed (1-10)")
    parser.add_argument("--arrivals", type=int, default=0, help="Extra requests arriving after the batch")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (use -1 for random)")
    parser.add_argument("--output", type=str, default="output/event_loop_vs_thread_pool", help="Output directory")
    parser.add_argument("--no-viz", action="store_true", help="Skip visualization generation")
    args = parser.parse_args()

    configure_from_env()
    seed = None if args.seed == -1 else args.seed

    print("Running event loop vs thread pool comparison...")
    result = run_comparison(
        async_requests=args.async_requests,
        sync_requests=args.sync_requests,
        pool_size=args.pool_size,
        num_workers=args.workers,
        speed=args.speed,
        arrivals=args.arrivals,
        seed=seed,
    )

    print_summary(result)

    if not args.no_viz:
        output_dir = Path(args.output)
        visualize_results(result, output_dir)
        print(f"\nVisualizations saved to: {output_dir.absolute()}")
