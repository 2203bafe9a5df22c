"""Test the demo orchestrator state machine."""

from collections import Counter

import pytest

from tensor_showcase.demos import DemoOrchestrator, DemoOutput, DemoState
from tensor_showcase.errors import ParseError
from tensor_showcase.tensors import ChartKind, NumpyBackend, TensorHandle


class RecordingChartSink:
    def __init__(self):
        self.charts = []

    def render(self, chart):
        self.charts.append(chart)


@pytest.fixture
def dispose_counts(monkeypatch):
    """Count every dispose call per tensor id."""
    counts = Counter()
    original = TensorHandle.dispose

    def counting_dispose(self):
        counts[self.id] += 1
        original(self)

    monkeypatch.setattr(TensorHandle, "dispose", counting_dispose)
    return counts


def test_failure_mid_sequence(session, backend, dispose_counts):
    """Test step 3 of 5 raising: error entry, no metric, scoped release."""
    acquired = []
    executed = []

    def step(n):
        executed.append(n)
        if n == 3:
            raise ValueError("step 3 exploded")
        acquired.append(backend.tensor([n, n]))

    def demo(backend_, scope):
        for n in range(1, 6):
            step(n)
        return DemoOutput("unreachable")

    sink = RecordingChartSink()
    orchestrator = DemoOrchestrator(session, backend, chart_sink=sink)
    outcome = orchestrator.run("Broken Demo", demo)

    assert outcome.state is DemoState.FAILED
    assert executed == [1, 2, 3]
    assert len(session.results) == 1
    entry = session.results.entries[0]
    assert entry.title == "Error"
    assert "step 3 exploded" in entry.content
    assert len(session.recorder) == 0
    assert sink.charts == []

    assert len(acquired) == 2
    assert all(t.is_disposed for t in acquired)
    assert [dispose_counts[t.id] for t in acquired] == [1, 1]
    assert orchestrator.state is DemoState.IDLE


def test_success_records_metric_and_result(session, backend, step_clock):
    """Test the success path end to end."""
    created = []

    def demo(backend_, scope):
        t = backend_.tensor([1, 2, 3])
        created.append(t)
        step_clock.advance_ms(12.5)
        return DemoOutput("narrative\n\n", chart_tensor=t.square())

    sink = RecordingChartSink()
    orchestrator = DemoOrchestrator(session, backend, chart_sink=sink, clock=step_clock)
    outcome = orchestrator.run("Squares", demo)

    assert outcome.succeeded
    assert outcome.elapsed_ms == pytest.approx(12.5)

    metric = session.recorder.metrics[0]
    assert metric.operation == "Squares"
    assert metric.execution_time_ms == pytest.approx(12.5)
    assert metric.memory_delta_bytes == 0

    entry = session.results.entries[0]
    assert entry.title == "Squares"
    assert entry.content.startswith("narrative\n\nExecution time: 12.50ms\n")
    assert entry.content.endswith("Memory usage: 0.00 KB")

    assert len(sink.charts) == 1
    assert sink.charts[0].kind is ChartKind.LINE
    assert sink.charts[0].series[0].values == [1.0, 4.0, 9.0]

    assert created[0].is_disposed
    assert backend.memory_usage().num_tensors == 0


def test_state_transitions(session, backend):
    """Test the lifecycle passes through running to a terminal state."""
    orchestrator = DemoOrchestrator(session, backend)

    orchestrator.run("ok", lambda b, s: DemoOutput("fine"))
    orchestrator.run("bad", lambda b, s: b.tensor("nope"))

    states = [state for _, state in orchestrator.transitions]
    assert states == [
        DemoState.RUNNING, DemoState.SUCCEEDED, DemoState.IDLE,
        DemoState.RUNNING, DemoState.FAILED, DemoState.IDLE,
    ]


def test_parse_error_becomes_log_entry(session, backend):
    """Test malformed tensor input is caught at the boundary."""
    def demo(backend_, scope):
        backend_.tensor([[1, 2], [3]])
        return DemoOutput("never")

    outcome = DemoOrchestrator(session, backend).run("Custom Tensor", demo)

    assert outcome.state is DemoState.FAILED
    assert outcome.entry.content.startswith("Error in custom tensor: Invalid tensor data")


def test_failure_does_not_corrupt_previous_state(session, backend):
    """Test later demos still run and earlier results are intact."""
    orchestrator = DemoOrchestrator(session, backend)

    def explode(b, s):
        raise RuntimeError("kaboom")

    outcomes = orchestrator.run_all([
        ("first", lambda b, s: DemoOutput("one")),
        ("second", explode),
        ("third", lambda b, s: DemoOutput("three")),
    ])

    assert [o.state for o in outcomes] == [
        DemoState.SUCCEEDED, DemoState.FAILED, DemoState.SUCCEEDED,
    ]
    assert [e.title for e in session.results.entries] == ["first", "Error", "third"]
    assert [m.operation for m in session.recorder.metrics] == ["first", "third"]


def test_chart_sink_failure_is_logged_not_raised(session, backend):
    """Test a broken chart sink does not fail the demo."""
    class BrokenSink:
        def render(self, chart):
            raise RuntimeError("no canvas")

    orchestrator = DemoOrchestrator(session, backend, chart_sink=BrokenSink())
    outcome = orchestrator.run("chart", lambda b, s: DemoOutput("x", b.tensor([1])))

    assert outcome.succeeded
    assert len(session.recorder) == 1


def test_parse_error_type(backend):
    """Test the backend reports ParseError for bad data."""
    with pytest.raises(ParseError):
        backend.tensor("nope")


class FlakyMemoryBackend(NumpyBackend):
    """Backend whose first memory query fails."""

    def __init__(self, failures=1):
        super().__init__(seed=0)
        self.failures = failures

    def memory_usage(self):
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("memory query failed")
        return super().memory_usage()


def test_memory_query_failure_returns_to_idle(session):
    """Test a failing memory query becomes an error entry and later demos run."""
    backend = FlakyMemoryBackend()
    orchestrator = DemoOrchestrator(session, backend)

    first = orchestrator.run("First", lambda b, s: DemoOutput("one"))
    assert first.state is DemoState.FAILED
    assert first.entry.content == "Error in first: memory query failed"
    assert orchestrator.state is DemoState.IDLE

    second = orchestrator.run("Second", lambda b, s: DemoOutput("two"))
    assert second.succeeded
    assert [m.operation for m in session.recorder.metrics] == ["Second"]


def test_memory_after_failure_releases_scope(session):
    """Test a failing memory-after query still releases tensors and records nothing."""
    backend = FlakyMemoryBackend(failures=0)
    created = []

    def demo(b, s):
        created.append(b.tensor([1, 2]))
        b.failures = 1
        return DemoOutput("never recorded")

    outcome = DemoOrchestrator(session, backend).run("After", demo)

    assert outcome.state is DemoState.FAILED
    assert created[0].is_disposed
    assert len(session.recorder) == 0
