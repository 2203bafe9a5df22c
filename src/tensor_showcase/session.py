"""Per-session state shared by the demos, benchmarks and exporters."""

from dataclasses import dataclass, field
from uuid import uuid4

from .analytics.metrics import CAPACITY, MetricRecorder
from .analytics.results import ResultLog


@dataclass
class SessionState:
    """Everything one session accumulates.

    Construct one per session and pass it to the components that need it.
    """

    recorder: MetricRecorder = field(default_factory=MetricRecorder)
    results: ResultLog = field(default_factory=ResultLog)
    session_id: str = field(default_factory=lambda: str(uuid4())[:8])

    @classmethod
    def create(cls, capacity: int = CAPACITY) -> "SessionState":
        return cls(recorder=MetricRecorder(capacity=capacity))

    def clear(self) -> None:
        """Clear both the result log and the metric history."""
        self.results.clear()
        self.recorder.clear()
