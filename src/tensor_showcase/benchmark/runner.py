"""Benchmark runner for timing operations against a backend.

Iterations always run one after another on the calling thread so samples
are not skewed by interleaving.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import numpy as np
from loguru import logger

from ..errors import InvalidArgument
from ..tensors.backend import TensorBackend


@dataclass
class MeasureResult:
    """Outcome of a single timed call."""

    elapsed_ms: float
    value: Any = None


@dataclass
class RepeatedMeasure:
    """Outcome of N sequential timed calls."""

    iterations: int
    total_ms: float
    average_ms: float
    values: List[Any] = field(default_factory=list)
    times: List[float] = field(default_factory=list)


@dataclass
class BenchmarkResult:
    """Summary statistics of a benchmark run."""

    iterations: int
    average_time_ms: float
    min_time_ms: float
    max_time_ms: float
    memory_delta_bytes: int
    raw_times: List[float] = field(default_factory=list)

    def describe(self) -> str:
        return (
            f"Average Time: {self.average_time_ms:.2f}ms\n"
            f"Min Time: {self.min_time_ms:.2f}ms\n"
            f"Max Time: {self.max_time_ms:.2f}ms\n"
            f"Memory Delta: {self.memory_delta_bytes / 1024:.2f} KB"
        )


class BenchmarkRunner:
    """Times zero-argument operations and samples memory around them."""

    def __init__(
        self,
        backend: Optional[TensorBackend] = None,
        memory_query: Optional[Callable[[], int]] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize benchmark runner.

        Args:
            backend: Backend whose ``memory_usage`` is sampled.
            memory_query: Explicit bytes-in-use query; overrides ``backend``.
            clock: Monotonic clock returning seconds.
        """
        if memory_query is None:
            if backend is None:
                raise ValueError("Either backend or memory_query is required")

            def memory_query() -> int:
                return backend.memory_usage().bytes_in_use

        self._memory_query = memory_query
        self._clock = clock

    def measure_once(self, operation: Callable[[], Any]) -> MeasureResult:
        """Call ``operation`` once and time it. Failures propagate unchanged."""
        start = self._clock()
        value = operation()
        elapsed_ms = (self._clock() - start) * 1000.0
        return MeasureResult(elapsed_ms=elapsed_ms, value=value)

    def measure_repeated(
        self,
        operation: Callable[[], Any],
        iterations: int = 1,
    ) -> RepeatedMeasure:
        """Call ``operation`` ``iterations`` times in sequence.

        If any call raises, the exception propagates and the samples taken
        so far are discarded.

        Raises:
            InvalidArgument: If iterations < 1.
        """
        _check_iterations(iterations)

        times: List[float] = []
        values: List[Any] = []
        for _ in range(iterations):
            sample = self.measure_once(operation)
            times.append(sample.elapsed_ms)
            values.append(sample.value)

        total_ms = float(sum(times))
        return RepeatedMeasure(
            iterations=iterations,
            total_ms=total_ms,
            average_ms=total_ms / iterations,
            values=values,
            times=times,
        )

    def benchmark(self, operation: Callable[[], Any], iterations: int = 10) -> BenchmarkResult:
        """Run ``operation`` repeatedly and reduce the samples to statistics.

        Memory is sampled once before and once after the whole loop.

        Raises:
            InvalidArgument: If iterations < 1. ``operation`` is not called.
        """
        _check_iterations(iterations)

        memory_before = self._memory_query()
        measured = self.measure_repeated(operation, iterations)
        memory_after = self._memory_query()

        times = np.asarray(measured.times, dtype=float)
        result = BenchmarkResult(
            iterations=iterations,
            average_time_ms=float(np.mean(times)),
            min_time_ms=float(np.min(times)),
            max_time_ms=float(np.max(times)),
            memory_delta_bytes=memory_after - memory_before,
            raw_times=list(measured.times),
        )

        logger.debug(
            f"Benchmark: {iterations} iterations, avg {result.average_time_ms:.3f}ms, "
            f"memory delta {result.memory_delta_bytes} bytes"
        )
        return result


def _check_iterations(iterations: int) -> None:
    if iterations < 1:
        raise InvalidArgument(f"iterations must be >= 1, got {iterations}")
