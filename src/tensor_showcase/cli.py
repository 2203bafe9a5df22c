"""Command-line interface for running tensor demos and exporting reports."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .analytics import MonitorReading, PerformanceMonitor
from .config import ShowcaseConfig, load_config
from .demos import DemoOrchestrator, DemoOutcome, build_catalog, make_custom_tensor
from .reporting import ExportFormat, FileSink, PlotlyChartSink, ReportExporter
from .session import SessionState
from .tensors import NumpyBackend
from .utils import setup_logger


def build_parser(demo_keys: List[str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tensor Showcase: run tensor operation demos and export the results"
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to showcase configuration YAML file (defaults apply if omitted)",
    )

    parser.add_argument(
        "--demo",
        "-d",
        action="append",
        choices=demo_keys,
        help="Demo to run; repeat for several (default: all)",
    )

    parser.add_argument(
        "--tensor",
        type=str,
        default=None,
        help="JSON tensor data for an extra custom-tensor demo, e.g. '[[1,2],[3,4]]'",
    )

    parser.add_argument(
        "--shape",
        type=str,
        default=None,
        help="Comma-separated shape for --tensor, e.g. '4' or '2,2'",
    )

    parser.add_argument(
        "--export",
        "-e",
        choices=[f.value for f in (ExportFormat.JSON, ExportFormat.TXT, ExportFormat.HTML)],
        default=None,
        help="Report format (default from config)",
    )

    parser.add_argument(
        "--performance-format",
        choices=[f.value for f in (ExportFormat.JSON, ExportFormat.CSV)],
        default=ExportFormat.JSON.value,
        help="Performance data export format",
    )

    parser.add_argument(
        "--output-dir",
        "-o",
        type=Path,
        default=None,
        help="Override output directory (default from config)",
    )

    parser.add_argument(
        "--chart",
        action="store_true",
        help="Save the last demo chart as HTML",
    )

    return parser


async def run_session(
    config: ShowcaseConfig,
    selected: List[str],
    custom_tensor: Optional[str] = None,
    custom_shape: Optional[str] = None,
    chart_sink: Optional[PlotlyChartSink] = None,
    session: Optional[SessionState] = None,
) -> tuple[SessionState, List[DemoOutcome]]:
    """Run the selected demos with the performance monitor active.

    Each demo runs to completion; the monitor samples in between.
    """
    if session is None:
        session = SessionState.create(capacity=config.monitor.capacity)
    backend = NumpyBackend(seed=config.random_seed)
    orchestrator = DemoOrchestrator(session, backend, chart_sink=chart_sink)
    catalog = build_catalog(config.benchmark.demo_iterations)

    monitor = PerformanceMonitor.from_config(config.monitor, session.recorder, backend)
    monitor.subscribe(_log_reading)
    monitor.start()

    outcomes: List[DemoOutcome] = []
    try:
        for key in selected:
            spec = catalog[key]
            outcomes.append(orchestrator.run(spec.title, spec.run))
            await asyncio.sleep(0)

        if custom_tensor is not None:
            outcomes.append(
                orchestrator.run("Custom Tensor", make_custom_tensor(custom_tensor, custom_shape))
            )
    finally:
        monitor.tick()
        await monitor.stop()

    return session, outcomes


def _log_reading(reading: MonitorReading) -> None:
    average = (
        f"{reading.average_execution_ms:.2f}ms"
        if reading.average_execution_ms is not None
        else "n/a"
    )
    logger.debug(
        f"Memory {reading.kilobytes_in_use:.1f} KB ({reading.usage_percentage:.1f}%, "
        f"{reading.level.value}) | avg execution {average}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    demo_keys = list(build_catalog().keys())
    parser = build_parser(demo_keys)
    args = parser.parse_args(argv)

    if args.shape is not None and args.tensor is None:
        parser.error("--shape requires --tensor")

    if args.config is not None and not args.config.exists():
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1

    try:
        config = load_config(args.config) if args.config is not None else ShowcaseConfig()

        session = SessionState.create(capacity=config.monitor.capacity)
        log_path = setup_logger(
            log_level=config.log_level,
            log_to_file=config.log_to_file,
            log_dir=config.log_dir,
            session_id=session.session_id,
            serialize=config.log_serialize,
        )

        logger.info(f"Session: {config.name} v{config.version} ({session.session_id})")
        if log_path is not None:
            logger.info(f"Logging to {log_path}")

        selected = args.demo or demo_keys
        chart_sink = PlotlyChartSink() if args.chart else None

        session, outcomes = asyncio.run(
            run_session(config, selected, args.tensor, args.shape, chart_sink, session)
        )

        output_dir = args.output_dir or config.export.output_dir
        sink = FileSink(output_dir)
        exporter = ReportExporter(title=config.export.report_title)
        snapshot = session.recorder.export_snapshot()

        report_format = ExportFormat(args.export or config.export.default_format)
        report_path = sink.save(
            exporter.export_report(session.results.entries, snapshot, report_format)
        )
        performance_path = sink.save(
            exporter.export_performance(snapshot, ExportFormat(args.performance_format))
        )

        chart_path = None
        if chart_sink is not None and chart_sink.figure is not None:
            chart_path = sink.save(chart_sink.export_html())

        summary = snapshot.summary
        failed = [o for o in outcomes if not o.succeeded]

        print("\n" + "=" * 60)
        print("SESSION SUMMARY")
        print("=" * 60)
        print(f"Session ID:       {session.session_id}")
        print(f"Demos Run:        {len(outcomes)}")
        print(f"Failed Demos:     {len(failed)}")
        print(f"Operations:       {summary.total_operations}")
        print(f"Avg Exec Time:    {summary.average_execution_time_ms:.2f}ms")
        print(f"Memory Delta:     {summary.total_memory_delta_bytes / 1024:.2f} KB")
        print(f"Peak Memory:      {summary.peak_memory_after_bytes / 1024:.2f} KB")
        print("=" * 60)
        for outcome in failed:
            print(f"  {outcome.entry.content}")
        print(f"\nReport saved to:      {report_path}")
        print(f"Performance saved to: {performance_path}")
        if chart_path is not None:
            print(f"Chart saved to:       {chart_path}")

        return 0

    except Exception as e:
        logger.error(f"Session failed: {e}")
        print(f"\nError: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
