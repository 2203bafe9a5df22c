"""Example session script demonstrating programmatic usage.

Runs the built-in demos, benchmarks a custom operation and writes an HTML
report plus CSV performance data to ``exports/``.
"""

from tensor_showcase.benchmark import BenchmarkRunner
from tensor_showcase.config import ShowcaseConfig
from tensor_showcase.demos import DemoOrchestrator, build_catalog
from tensor_showcase.reporting import ExportFormat, FileSink, PlotlyChartSink, ReportExporter
from tensor_showcase.session import SessionState
from tensor_showcase.tensors import NumpyBackend


def main():
    """Run example session."""
    print("=" * 60)
    print("Tensor Showcase Example Session")
    print("=" * 60)

    # 1. Session state and collaborators
    config = ShowcaseConfig()
    session = SessionState.create(capacity=config.monitor.capacity)
    backend = NumpyBackend(seed=config.random_seed)
    charts = PlotlyChartSink()
    orchestrator = DemoOrchestrator(session, backend, chart_sink=charts)

    # 2. Run every demo
    for spec in build_catalog(config.benchmark.demo_iterations).values():
        outcome = orchestrator.run(spec.title, spec.run)
        status = "ok" if outcome.succeeded else f"failed: {outcome.error}"
        print(f"{spec.title:<28} {status}")

    # 3. Benchmark an elementwise product outside the demos
    left = backend.random_normal([64, 64])
    right = backend.random_normal([64, 64])

    def elementwise_product():
        product = left.mul(right)
        product.dispose()

    result = BenchmarkRunner(backend).benchmark(
        elementwise_product, config.benchmark.default_iterations
    )
    print("\nBenchmark (64x64 multiply):")
    print(result.describe())
    backend.dispose_all()

    # 4. Print the session log
    print("\n" + session.results.format_all())

    # 5. Export
    sink = FileSink(config.export.output_dir)
    exporter = ReportExporter(title=config.export.report_title)
    snapshot = session.recorder.export_snapshot()

    report_path = sink.save(exporter.export_report(session.results.entries, snapshot, ExportFormat.HTML))
    perf_path = sink.save(exporter.export_performance(snapshot, ExportFormat.CSV))
    chart_path = sink.save(charts.export_html())

    print("=" * 60)
    print(f"Report:      {report_path}")
    print(f"Performance: {perf_path}")
    print(f"Chart:       {chart_path}")


if __name__ == "__main__":
    main()
