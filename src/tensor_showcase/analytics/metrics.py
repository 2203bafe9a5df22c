"""Capacity-bounded metric log with derived summary statistics."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, Optional, Tuple

from loguru import logger

from ..utils.time_utils import as_utc, iso_timestamp, utc_now

CAPACITY = 100


@dataclass(frozen=True)
class Metric:
    """One timed and memory-sampled operation."""

    operation: str
    execution_time_ms: float
    memory_before_bytes: int
    memory_after_bytes: int
    memory_delta_bytes: int
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Export-facing representation (camelCase keys)."""
        return {
            "operation": self.operation,
            "executionTime": self.execution_time_ms,
            "memoryBefore": self.memory_before_bytes,
            "memoryAfter": self.memory_after_bytes,
            "memoryDelta": self.memory_delta_bytes,
            "timestamp": iso_timestamp(self.timestamp),
        }


@dataclass(frozen=True)
class PerformanceSummary:
    """Aggregates over the retained metrics; all zero when none are retained."""

    total_operations: int = 0
    average_execution_time_ms: float = 0.0
    total_memory_delta_bytes: int = 0
    peak_memory_after_bytes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalOperations": self.total_operations,
            "averageExecutionTime": self.average_execution_time_ms,
            "totalMemoryUsed": self.total_memory_delta_bytes,
            "peakMemoryUsage": self.peak_memory_after_bytes,
        }


@dataclass(frozen=True)
class MetricSnapshot:
    """Immutable point-in-time copy of a recorder's state."""

    summary: PerformanceSummary
    metrics: Tuple[Metric, ...] = field(default_factory=tuple)
    export_timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        summary = self.summary.to_dict()
        summary["operations"] = [
            {
                "operation": m.operation,
                "executionTime": m.execution_time_ms,
                "memoryDelta": m.memory_delta_bytes,
                "timestamp": iso_timestamp(m.timestamp),
            }
            for m in self.metrics
        ]
        return {
            "summary": summary,
            "metrics": [m.to_dict() for m in self.metrics],
            "exportTimestamp": iso_timestamp(self.export_timestamp),
        }


class MetricRecorder:
    """Append-only log of the most recent operation metrics.

    Holds at most ``capacity`` metrics. Each insertion past capacity evicts
    exactly one metric, the oldest. Inputs are stored as given; validating
    them is the caller's job.
    """

    def __init__(self, capacity: int = CAPACITY) -> None:
        """Initialize metric recorder.

        Args:
            capacity: Maximum number of retained metrics.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._metrics: Deque[Metric] = deque()

    def __len__(self) -> int:
        return len(self._metrics)

    @property
    def metrics(self) -> Tuple[Metric, ...]:
        """Retained metrics, oldest first."""
        return tuple(self._metrics)

    def record(
        self,
        operation: str,
        execution_time_ms: float,
        memory_before_bytes: int,
        memory_after_bytes: int,
        timestamp: Optional[datetime] = None,
    ) -> Metric:
        """Record a metric for one operation.

        Args:
            operation: Operation label.
            execution_time_ms: Wall-clock duration in milliseconds.
            memory_before_bytes: Backend bytes in use before the operation.
            memory_after_bytes: Backend bytes in use after the operation.
            timestamp: Defaults to now; a naive value is taken as UTC.

        Returns:
            The stored metric.
        """
        metric = Metric(
            operation=operation,
            execution_time_ms=execution_time_ms,
            memory_before_bytes=memory_before_bytes,
            memory_after_bytes=memory_after_bytes,
            memory_delta_bytes=memory_after_bytes - memory_before_bytes,
            timestamp=as_utc(timestamp) if timestamp is not None else utc_now(),
        )
        self._metrics.append(metric)

        if len(self._metrics) > self.capacity:
            evicted = self._metrics.popleft()
            logger.debug(f"Metric capacity reached, evicted {evicted.operation!r}")

        return metric

    def summary(self) -> PerformanceSummary:
        """Compute aggregate statistics over the retained metrics."""
        if not self._metrics:
            return PerformanceSummary()

        count = len(self._metrics)
        return PerformanceSummary(
            total_operations=count,
            average_execution_time_ms=sum(m.execution_time_ms for m in self._metrics) / count,
            total_memory_delta_bytes=sum(m.memory_delta_bytes for m in self._metrics),
            peak_memory_after_bytes=max(m.memory_after_bytes for m in self._metrics),
        )

    def average_execution_time(self) -> Optional[float]:
        """Mean execution time, or None when nothing has been recorded."""
        if not self._metrics:
            return None
        return self.summary().average_execution_time_ms

    def clear(self) -> None:
        """Drop all retained metrics."""
        self._metrics.clear()
        logger.debug("Metric recorder cleared")

    def export_snapshot(self) -> MetricSnapshot:
        """Detached copy of the current summary and metrics."""
        return MetricSnapshot(
            summary=self.summary(),
            metrics=tuple(self._metrics),
            export_timestamp=utc_now(),
        )
