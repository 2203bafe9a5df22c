"""Periodic performance sampler.

Runs as a task on the asyncio event loop. Each tick samples backend memory
and the recorder's average execution time and pushes a reading to every
subscriber. Ticks only run between awaits, so a demo step is never
interrupted.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from loguru import logger

from ..config.schema import DEFAULT_MEMORY_BUDGET_BYTES, MonitorConfig
from ..tensors.backend import TensorBackend
from ..tensors.utils import memory_usage_percentage
from .metrics import MetricRecorder


class UsageLevel(str, Enum):
    """Memory usage severity, keyed to display styles."""

    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class MonitorReading:
    """One sample produced by the monitor."""

    bytes_in_use: int
    usage_percentage: float
    level: UsageLevel
    average_execution_ms: Optional[float]

    @property
    def kilobytes_in_use(self) -> float:
        return self.bytes_in_use / 1024


Subscriber = Callable[[MonitorReading], None]


class PerformanceMonitor:
    """Samples memory and timing at a fixed interval with start/stop lifecycle."""

    def __init__(
        self,
        recorder: MetricRecorder,
        backend: TensorBackend,
        interval_seconds: float = 1.0,
        memory_budget_bytes: int = DEFAULT_MEMORY_BUDGET_BYTES,
        warning_pct: float = 60.0,
        danger_pct: float = 80.0,
    ) -> None:
        """Initialize performance monitor.

        Args:
            recorder: Source of average execution time.
            backend: Source of memory usage.
            interval_seconds: Delay between samples.
            memory_budget_bytes: Bytes treated as 100% usage.
            warning_pct: Usage above this is a warning.
            danger_pct: Usage above this is dangerous.
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.recorder = recorder
        self.backend = backend
        self.interval_seconds = interval_seconds
        self.memory_budget_bytes = memory_budget_bytes
        self.warning_pct = warning_pct
        self.danger_pct = danger_pct
        self._subscribers: List[Subscriber] = []
        self._task: Optional[asyncio.Task] = None
        self.last_reading: Optional[MonitorReading] = None

    @classmethod
    def from_config(
        cls,
        config: MonitorConfig,
        recorder: MetricRecorder,
        backend: TensorBackend,
    ) -> "PerformanceMonitor":
        return cls(
            recorder=recorder,
            backend=backend,
            interval_seconds=config.sample_interval_seconds,
            memory_budget_bytes=config.memory_budget_bytes,
            warning_pct=config.warning_pct,
            danger_pct=config.danger_pct,
        )

    @property
    def is_monitoring(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a reading callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def sample(self) -> MonitorReading:
        """Take one reading and deliver it to subscribers."""
        bytes_in_use = self.backend.memory_usage().bytes_in_use
        percentage = min(
            memory_usage_percentage(self.backend, self.memory_budget_bytes), 100.0
        )

        if percentage > self.danger_pct:
            level = UsageLevel.DANGER
        elif percentage > self.warning_pct:
            level = UsageLevel.WARNING
        else:
            level = UsageLevel.SUCCESS

        reading = MonitorReading(
            bytes_in_use=bytes_in_use,
            usage_percentage=percentage,
            level=level,
            average_execution_ms=self.recorder.average_execution_time(),
        )
        self.last_reading = reading

        for callback in list(self._subscribers):
            try:
                callback(reading)
            except Exception as e:
                logger.error(f"Error updating performance display: {e}")

        return reading

    def tick(self) -> Optional[MonitorReading]:
        """Take one reading, logging a failed sample instead of raising."""
        try:
            return self.sample()
        except Exception as e:
            logger.error(f"Performance sample failed: {e}")
            return None

    def start(self) -> None:
        """Begin sampling on the running event loop. No-op if already running."""
        if self.is_monitoring:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())
        logger.debug(f"Performance monitor started ({self.interval_seconds}s interval)")

    async def stop(self) -> None:
        """Stop sampling. No-op if not running."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Performance monitor task ended with an error: {e}")
        logger.debug("Performance monitor stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.tick()
