"""Test the built-in tensor demos."""

import pytest

from tensor_showcase.demos import DemoOrchestrator, build_catalog, make_custom_tensor
from tensor_showcase.tensors import ChartKind
from tensor_showcase.reporting import PlotlyChartSink


@pytest.fixture
def orchestrator(session, backend):
    return DemoOrchestrator(session, backend, chart_sink=PlotlyChartSink())


def test_catalog_order():
    """Test catalog keys and titles."""
    catalog = build_catalog()

    assert list(catalog) == ["shape", "dtype", "math", "memory", "advanced"]
    assert catalog["math"].title == "Mathematical Operations"


@pytest.mark.parametrize("key", ["shape", "dtype", "math", "memory", "advanced"])
def test_demo_runs_and_releases_memory(key, orchestrator, backend, session):
    """Test every demo succeeds and leaves no live tensors behind."""
    spec = build_catalog(benchmark_iterations=2)[key]

    outcome = orchestrator.run(spec.title, spec.run)

    assert outcome.succeeded, outcome.error
    assert backend.memory_usage().num_tensors == 0
    assert session.results.entries[-1].title == spec.title
    assert "Execution time:" in session.results.entries[-1].content


def test_shape_demo_narrative(orchestrator):
    """Test the shape demo narrates each step."""
    spec = build_catalog()["shape"]
    outcome = orchestrator.run(spec.title, spec.run)

    content = outcome.entry.content
    for step in ["asScalar:", "flatten:", "as5D:", "expandDims:", "squeeze:"]:
        assert step in content
    assert outcome.chart.kind is ChartKind.LINE


def test_advanced_demo_charts_matrix(orchestrator):
    """Test the advanced demo charts a 3x3 tensor as bars."""
    spec = build_catalog(benchmark_iterations=2)["advanced"]
    outcome = orchestrator.run(spec.title, spec.run)

    assert outcome.chart.kind is ChartKind.BAR
    assert len(outcome.chart.series) == 3
    assert "Performance Benchmark:" in outcome.entry.content
    assert "Shapes Match: True" in outcome.entry.content


def test_memory_demo_reports_cleanup(orchestrator):
    """Test the memory demo narrates disposal."""
    spec = build_catalog()["memory"]
    outcome = orchestrator.run(spec.title, spec.run)

    content = outcome.entry.content
    assert "Disposed tensor 10" in content
    assert "Released 4 tensors with a scoped cleanup" in content
    assert "After clearing all memory: 0.00 KB" in content
    assert outcome.chart is None


def test_custom_tensor_demo(orchestrator):
    """Test user input parsing inside a demo."""
    outcome = orchestrator.run("Custom Tensor", make_custom_tensor("[1, 2, 3, 4]", "2,2"))

    assert outcome.succeeded
    assert "Shape: [2, 2]" in outcome.entry.content
    assert orchestrator.chart_sink.figure is not None


def test_custom_tensor_bad_input(orchestrator, session):
    """Test malformed input becomes an error entry."""
    outcome = orchestrator.run("Custom Tensor", make_custom_tensor("[1, 2", None))

    assert not outcome.succeeded
    assert session.results.entries[-1].title == "Error"
    assert "Invalid tensor input" in session.results.entries[-1].content
