"""Timing and memory-delta benchmarking of arbitrary operations."""

from .runner import BenchmarkResult, BenchmarkRunner, MeasureResult, RepeatedMeasure

__all__ = ["BenchmarkResult", "BenchmarkRunner", "MeasureResult", "RepeatedMeasure"]
