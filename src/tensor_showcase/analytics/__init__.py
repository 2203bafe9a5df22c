"""Metric recording, result logging and performance sampling."""

from .metrics import CAPACITY, Metric, MetricRecorder, MetricSnapshot, PerformanceSummary
from .monitor import MonitorReading, PerformanceMonitor, UsageLevel
from .results import ResultEntry, ResultLog

__all__ = [
    "CAPACITY",
    "Metric",
    "MetricRecorder",
    "MetricSnapshot",
    "PerformanceSummary",
    "MonitorReading",
    "PerformanceMonitor",
    "UsageLevel",
    "ResultEntry",
    "ResultLog",
]
