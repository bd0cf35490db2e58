"""Tests for the in-memory request timing buffer."""

from solarify.application.services.performance_monitor import PerformanceMonitor


def test_empty_snapshot() -> None:
    snapshot = PerformanceMonitor(capacity=5).snapshot()
    assert snapshot == {
        "capacity": 5,
        "count": 0,
        "average_duration_ms": 0.0,
        "p95_duration_ms": 0.0,
        "error_rate": 0.0,
        "samples": [],
    }


def test_buffer_drops_oldest_samples() -> None:
    monitor = PerformanceMonitor(capacity=3)
    for i in range(5):
        monitor.record("GET", f"/r{i}", 200, float(i))
    assert [s.path for s in monitor.samples()] == ["/r2", "/r3", "/r4"]


def test_snapshot_statistics() -> None:
    monitor = PerformanceMonitor(capacity=100)
    for duration in range(1, 21):
        monitor.record("GET", "/x", 500 if duration % 10 == 0 else 200, float(duration))
    snapshot = monitor.snapshot()
    assert snapshot["count"] == 20
    assert snapshot["average_duration_ms"] == 10.5
    assert snapshot["p95_duration_ms"] == 19.0
    assert snapshot["error_rate"] == 0.1
    assert snapshot["samples"][0]["path"] == "/x"
    assert "recorded_at" in snapshot["samples"][0]


def test_clear() -> None:
    monitor = PerformanceMonitor()
    monitor.record("POST", "/y", 201, 1.5)
    monitor.clear()
    assert monitor.samples() == []
    assert monitor.capacity == 100
