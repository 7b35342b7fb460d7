"""Tests for the in-process request metrics."""

from app.core.metrics import GatewayMetrics


def test_empty_summary():
    summary = GatewayMetrics().get_summary()
    assert summary["total_requests"] == 0
    assert summary["average_duration_ms"] == 0.0
    assert summary["error_rate"] == 0.0


def test_summary_counts_by_status():
    tracker = GatewayMetrics(slow_threshold=1.0)
    tracker.record(0.1, 200)
    tracker.record(0.1, 403)
    tracker.record(0.2, 502)
    tracker.record(1.6, 504)

    summary = tracker.get_summary()

    assert summary["total_requests"] == 4
    assert summary["average_duration_ms"] == 500.0
    assert summary["origin_rejections"] == 1
    assert summary["upstream_errors"] == 2
    assert summary["errors"] == 2
    assert summary["error_rate"] == 50.0
    assert summary["slow_requests"] == 1


def test_record_flags_slow_requests():
    tracker = GatewayMetrics(slow_threshold=2.0)
    assert tracker.record(2.5, 200) is True
    assert tracker.record(0.5, 200) is False


def test_reset():
    tracker = GatewayMetrics()
    tracker.record(0.1, 500)
    tracker.reset()
    assert tracker.get_summary()["total_requests"] == 0
