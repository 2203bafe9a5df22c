"""Demo orchestrator: runs one demo under timing, memory sampling and scoped
tensor release, then records the outcome in the session.

State machine per invocation::

    IDLE -> RUNNING -> SUCCEEDED -> IDLE
                    -> FAILED    -> IDLE

A failing demo becomes an "Error" result entry; it is never re-raised and
never records a metric.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from loguru import logger

from ..analytics.metrics import Metric
from ..analytics.results import ResultEntry
from ..reporting.charts import ChartSink
from ..session import SessionState
from ..tensors.backend import ResourceScope, TensorBackend, TensorHandle
from ..tensors.utils import ChartData, tensor_to_chart_data

ERROR_TITLE = "Error"


class DemoState(str, Enum):
    """Orchestrator lifecycle state."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class DemoOutput:
    """What a demo hands back: its narrative and an optional tensor to chart."""

    narrative: str
    chart_tensor: Optional[TensorHandle] = None


@dataclass
class DemoOutcome:
    """Result of one orchestrated demo run."""

    title: str
    state: DemoState
    entry: ResultEntry
    elapsed_ms: Optional[float] = None
    metric: Optional[Metric] = None
    chart: Optional[ChartData] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state is DemoState.SUCCEEDED


DemoFn = Callable[[TensorBackend, ResourceScope], DemoOutput]


class DemoOrchestrator:
    """Runs demos one at a time against a backend and a session."""

    def __init__(
        self,
        session: SessionState,
        backend: TensorBackend,
        chart_sink: Optional[ChartSink] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize demo orchestrator.

        Args:
            session: Session receiving metrics and result entries.
            backend: Numeric backend the demos run against.
            chart_sink: Optional sink for the demo's final tensor.
            clock: Monotonic clock returning seconds.
        """
        self.session = session
        self.backend = backend
        self.chart_sink = chart_sink
        self._clock = clock
        self.state = DemoState.IDLE
        self.transitions: List[Tuple[str, DemoState]] = []

    def run(self, title: str, demo: DemoFn) -> DemoOutcome:
        """Run one demo to a terminal state.

        Args:
            title: Demo name used for the metric and the result entry.
            demo: Callable receiving the backend and the active scope.

        Returns:
            Outcome describing the terminal state reached.
        """
        if self.state is not DemoState.IDLE:
            raise RuntimeError(f"Cannot start {title!r} while orchestrator is {self.state.value}")

        self._transition(title, DemoState.RUNNING)

        # Backend queries count as demo failures too; state must reach IDLE.
        try:
            start = self._clock()
            memory_before = self.backend.memory_usage().bytes_in_use
            with self.backend.scope() as scope:
                output = demo(self.backend, scope)
                chart = (
                    tensor_to_chart_data(output.chart_tensor)
                    if output.chart_tensor is not None
                    else None
                )
            elapsed_ms = (self._clock() - start) * 1000.0
            memory_after = self.backend.memory_usage().bytes_in_use
        except Exception as e:
            return self._fail(title, e)

        metric = self.session.recorder.record(title, elapsed_ms, memory_before, memory_after)
        content = (
            f"{output.narrative}"
            f"Execution time: {elapsed_ms:.2f}ms\n"
            f"Memory usage: {memory_after / 1024:.2f} KB"
        )
        entry = self.session.results.append(title, content)

        if chart is not None and self.chart_sink is not None:
            try:
                self.chart_sink.render(chart)
            except Exception as e:
                logger.warning(f"Chart rendering failed for {title!r}: {e}")

        self._transition(title, DemoState.SUCCEEDED)
        logger.info(f"{title} completed in {elapsed_ms:.2f}ms")
        self._transition(title, DemoState.IDLE)

        return DemoOutcome(
            title=title,
            state=DemoState.SUCCEEDED,
            entry=entry,
            elapsed_ms=elapsed_ms,
            metric=metric,
            chart=chart,
        )

    def run_all(self, demos: Iterable[Tuple[str, DemoFn]]) -> List[DemoOutcome]:
        """Run demos in order; a failing demo does not stop the rest."""
        return [self.run(title, demo) for title, demo in demos]

    def _fail(self, title: str, error: Exception) -> DemoOutcome:
        self._transition(title, DemoState.FAILED)
        message = f"Error in {title.lower()}: {error}"
        logger.error(message)
        entry = self.session.results.append(ERROR_TITLE, message)
        self._transition(title, DemoState.IDLE)
        return DemoOutcome(
            title=title,
            state=DemoState.FAILED,
            entry=entry,
            error=str(error),
        )

    def _transition(self, title: str, state: DemoState) -> None:
        logger.debug(f"{title}: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append((title, state))
