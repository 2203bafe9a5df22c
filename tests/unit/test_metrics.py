"""Test metric recording and summaries."""

from datetime import datetime, timedelta, timezone

import pytest

from tensor_showcase.analytics import CAPACITY, MetricRecorder, PerformanceSummary


def test_empty_summary_is_all_zero():
    """Test summary of an empty recorder."""
    summary = MetricRecorder().summary()

    assert summary == PerformanceSummary(0, 0.0, 0, 0)


def test_single_metric_summary():
    """Test summary after one recorded metric."""
    recorder = MetricRecorder()
    metric = recorder.record("op", 5.0, 100, 150)

    assert metric.memory_delta_bytes == 50

    summary = recorder.summary()
    assert summary.total_operations == 1
    assert summary.average_execution_time_ms == 5.0
    assert summary.total_memory_delta_bytes == 50
    assert summary.peak_memory_after_bytes == 150


@pytest.mark.parametrize("count", [1, 50, CAPACITY])
def test_holds_all_metrics_up_to_capacity(count):
    """Test insertion order is kept while under capacity."""
    recorder = MetricRecorder()
    for i in range(count):
        recorder.record(f"op{i}", float(i), 0, i)

    assert len(recorder) == count
    assert [m.operation for m in recorder.metrics] == [f"op{i}" for i in range(count)]


def test_evicts_oldest_beyond_capacity():
    """Test FIFO eviction keeps the most recent metrics."""
    recorder = MetricRecorder()
    for i in range(CAPACITY + 25):
        recorder.record(f"op{i}", 1.0, 0, 0)

    operations = [m.operation for m in recorder.metrics]
    assert len(operations) == CAPACITY
    assert operations[0] == "op25"
    assert operations[-1] == f"op{CAPACITY + 24}"


def test_custom_capacity():
    """Test a smaller capacity evicts one metric per insertion."""
    recorder = MetricRecorder(capacity=3)
    for i in range(5):
        recorder.record(f"op{i}", 1.0, 0, 0)
        assert len(recorder) <= 3

    assert [m.operation for m in recorder.metrics] == ["op2", "op3", "op4"]


def test_negative_values_are_stored():
    """Test no validation is applied to inputs."""
    recorder = MetricRecorder()
    recorder.record("odd", -2.0, 500, 100)

    summary = recorder.summary()
    assert summary.average_execution_time_ms == -2.0
    assert summary.total_memory_delta_bytes == -400


def test_summary_aggregates():
    """Test mean, sum of deltas and peak."""
    recorder = MetricRecorder()
    recorder.record("a", 2.0, 0, 1000)
    recorder.record("b", 4.0, 1000, 400)
    recorder.record("c", 6.0, 400, 800)

    summary = recorder.summary()
    assert summary.total_operations == 3
    assert summary.average_execution_time_ms == pytest.approx(4.0)
    assert summary.total_memory_delta_bytes == 800
    assert summary.peak_memory_after_bytes == 1000
    assert recorder.summary() == summary


def test_clear_resets_summary():
    """Test clear empties the recorder."""
    recorder = MetricRecorder()
    recorder.record("a", 2.0, 0, 10)
    recorder.clear()

    assert len(recorder) == 0
    assert recorder.summary() == PerformanceSummary()
    assert recorder.average_execution_time() is None


def test_snapshot_is_detached():
    """Test snapshots do not change when the recorder does."""
    recorder = MetricRecorder()
    recorder.record("a", 1.0, 0, 10)

    snapshot = recorder.export_snapshot()
    recorder.record("b", 3.0, 10, 20)
    recorder.clear()

    assert [m.operation for m in snapshot.metrics] == ["a"]
    assert snapshot.summary.total_operations == 1
    assert isinstance(snapshot.metrics, tuple)


def test_snapshot_dict_layout():
    """Test exported snapshot keys."""
    recorder = MetricRecorder()
    recorder.record("a", 1.5, 0, 2048)

    data = recorder.export_snapshot().to_dict()

    assert set(data) == {"summary", "metrics", "exportTimestamp"}
    assert data["summary"]["peakMemoryUsage"] == 2048
    assert data["summary"]["operations"][0]["operation"] == "a"
    assert data["metrics"][0]["memoryDelta"] == 2048
    assert data["exportTimestamp"].endswith("Z")


def test_invalid_capacity():
    """Test capacity must be positive."""
    with pytest.raises(ValueError):
        MetricRecorder(capacity=0)


def test_timestamps_normalized_to_utc():
    """Test naive timestamps are taken as UTC and aware ones converted."""
    recorder = MetricRecorder()
    naive = recorder.record("naive", 1.0, 0, 0, timestamp=datetime(2024, 3, 1, 12, 0, 0))
    offset = timezone(timedelta(hours=2))
    aware = recorder.record("aware", 1.0, 0, 0, timestamp=datetime(2024, 3, 1, 14, 0, 0, tzinfo=offset))

    assert naive.timestamp == aware.timestamp
    assert naive.timestamp.tzinfo is timezone.utc
    assert naive.to_dict()["timestamp"] == "2024-03-01T12:00:00.000Z"
    assert len(recorder.export_snapshot().to_dict()["operations"]) == 2
