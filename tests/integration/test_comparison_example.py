"""
Integration tests for the event loop vs thread pool example.

Run with: pytest tests/integration/test_comparison_example.py -v
Output will be in: test_output/test_comparison_example/<test_name>/
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "examples"))

from event_loop_vs_thread_pool import print_summary, run_comparison, visualize_results


class TestComparisonRun:
    def test_everything_completes(self):
        result = run_comparison(async_requests=10, sync_requests=10, pool_size=2, seed=3)

        assert not result.controller.is_running
        assert result.statistics.completed == 20
        assert set(result.statistics.latencies["request_type"]) == {"async", "sync"}

    def test_small_pool_makes_sync_slower(self):
        """With 2 threads and 20 sync requests, sync waits in rounds."""
        result = run_comparison(async_requests=5, sync_requests=20, pool_size=2, seed=3)
        stats = result.statistics

        assert stats.mean_latency("sync") > stats.mean_latency("async")

    def test_thread_occupancy_bounded_by_pool(self):
        result = run_comparison(async_requests=5, sync_requests=15, pool_size=3, seed=8)
        busy = result.probe.data(0, "busy_threads")

        assert busy.max() <= 3
        assert busy.max() == 3

    def test_extra_arrivals(self):
        result = run_comparison(async_requests=2, sync_requests=2, arrivals=10, seed=4)
        assert result.statistics.completed == 14

    def test_summary_prints(self, capsys):
        result = run_comparison(async_requests=2, sync_requests=2, num_workers=2, seed=1)
        print_summary(result)

        out = capsys.readouterr().out
        assert "EVENT LOOP vs THREAD POOL" in out
        assert "Worker 1" in out


class TestComparisonVisualization:
    def test_writes_figures(self, test_output_dir: Path):
        pytest.importorskip("matplotlib")
        result = run_comparison(async_requests=15, sync_requests=15, pool_size=3, num_workers=2, seed=6)

        written = visualize_results(result, test_output_dir)

        assert [p.name for p in written] == ["occupancy.png", "latency.png"]
        assert all(p.exists() for p in written)
        print(f"\nPlots saved to: {test_output_dir}")
