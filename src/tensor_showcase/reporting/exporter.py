"""Report exporter producing JSON, CSV, text and HTML payloads.

The exporter is a pure transformation: it never writes files itself. Hand
the returned ``ExportPayload`` to an export sink (see ``sinks.FileSink``).
"""

import json
from datetime import datetime
from typing import Callable, Optional, Sequence

import pandas as pd
from jinja2 import Template
from loguru import logger

from ..analytics.metrics import MetricSnapshot
from ..analytics.results import ResultEntry
from ..errors import InvalidArgument
from ..tensors.backend import TensorHandle
from ..utils.time_utils import file_timestamp, iso_timestamp, utc_now
from .formats import ExportFormat, ExportPayload

DEFAULT_REPORT_TITLE = "Tensor Showcase Report"
RESULTS_FILENAME = "tensor-operations-results.json"
CSV_COLUMNS = [
    "operation",
    "executionTime",
    "memoryBefore",
    "memoryAfter",
    "memoryDelta",
    "timestamp",
]
OPERATION_MARKER = "Execution time:"


class ReportExporter:
    """Serializes session results and performance snapshots.

    Produces:
    - Session report (JSON / plain text / HTML)
    - Performance data (JSON / CSV)
    - Raw results dump (JSON)
    - Tensor values (CSV)
    """

    def __init__(
        self,
        title: str = DEFAULT_REPORT_TITLE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize report exporter.

        Args:
            title: Title line used by session reports.
            clock: Source of the export timestamp.
        """
        self.title = title
        self._clock = clock
        self.html_template = self._get_html_template()

    def export_report(
        self,
        results: Sequence[ResultEntry],
        performance: Optional[MetricSnapshot] = None,
        fmt: ExportFormat = ExportFormat.JSON,
    ) -> ExportPayload:
        """Export a full session report.

        Args:
            results: Result entries in display order.
            performance: Optional performance snapshot; its section is omitted
                when missing.
            fmt: JSON, TXT or HTML.

        Returns:
            Payload named ``report-<timestamp>.<ext>``.

        Raises:
            InvalidArgument: If ``fmt`` is CSV.
        """
        fmt = _coerce_format(fmt)
        now = self._clock()
        report = self._build_report(results, performance, now)

        if fmt is ExportFormat.JSON:
            body = json.dumps(report, indent=2)
        elif fmt is ExportFormat.TXT:
            body = self._render_text(report)
        elif fmt is ExportFormat.HTML:
            body = self.html_template.render(report=report)
        elif fmt is ExportFormat.CSV:
            raise InvalidArgument("CSV export is only available for performance data")
        else:
            raise InvalidArgument(f"Unhandled export format: {fmt}")

        payload = self._payload(body, f"report-{file_timestamp(now)}", fmt)
        logger.info(f"Prepared {fmt.value} report with {len(results)} results: {payload.filename}")
        return payload

    def export_performance(
        self,
        snapshot: MetricSnapshot,
        fmt: ExportFormat = ExportFormat.JSON,
    ) -> ExportPayload:
        """Export a performance snapshot.

        Args:
            snapshot: Snapshot from ``MetricRecorder.export_snapshot``.
            fmt: JSON or CSV.

        Raises:
            InvalidArgument: If ``fmt`` is TXT or HTML.
        """
        fmt = _coerce_format(fmt)
        stem = f"performance-{file_timestamp(self._clock())}"

        if fmt is ExportFormat.JSON:
            body = json.dumps(snapshot.to_dict(), indent=2)
        elif fmt is ExportFormat.CSV:
            body = self._metrics_to_dataframe(snapshot).to_csv(index=False, lineterminator="\n")
        elif fmt in (ExportFormat.TXT, ExportFormat.HTML):
            raise InvalidArgument(f"{fmt.value} export is not available for performance data")
        else:
            raise InvalidArgument(f"Unhandled export format: {fmt}")

        logger.info(f"Prepared {fmt.value} performance export with {len(snapshot.metrics)} metrics")
        return self._payload(body, stem, fmt)

    def export_results(self, results: Sequence[ResultEntry]) -> ExportPayload:
        """Dump result entries as a JSON array."""
        body = json.dumps([r.to_dict() for r in results], indent=2)
        return ExportPayload(
            data=body.encode("utf-8"),
            filename=RESULTS_FILENAME,
            mime_type=ExportFormat.JSON.mime_type,
        )

    def export_tensor_csv(
        self,
        tensor: TensorHandle,
        filename: str = "tensor-data.csv",
    ) -> ExportPayload:
        """Export tensor values as CSV.

        Rank 1 tensors get ``Index,Value`` rows, rank 2 tensors
        ``Row,Column,Value`` rows; higher ranks are flattened to ``Value``.
        """
        values = tensor.data_sync()
        shape = tensor.shape

        if len(shape) == 1:
            df = pd.DataFrame({"Index": range(len(values)), "Value": values})
        elif len(shape) == 2:
            rows, cols = shape
            df = pd.DataFrame({
                "Row": [i for i in range(rows) for _ in range(cols)],
                "Column": [j for _ in range(rows) for j in range(cols)],
                "Value": values,
            })
        else:
            df = pd.DataFrame({"Value": values})

        return ExportPayload(
            data=df.to_csv(index=False, lineterminator="\n").encode("utf-8"),
            filename=filename,
            mime_type=ExportFormat.CSV.mime_type,
        )

    def _build_report(
        self,
        results: Sequence[ResultEntry],
        performance: Optional[MetricSnapshot],
        now: datetime,
    ) -> dict:
        """Assemble the report structure shared by all report formats."""
        return {
            "title": self.title,
            "timestamp": iso_timestamp(now),
            "results": [r.to_dict() for r in results],
            "performance": performance.to_dict() if performance is not None else None,
            "summary": {
                "totalResults": len(results),
                "totalOperations": sum(r.content.count(OPERATION_MARKER) for r in results),
                "averageExecutionTime": (
                    performance.summary.average_execution_time_ms
                    if performance is not None
                    else 0.0
                ),
            },
        }

    @staticmethod
    def _render_text(report: dict) -> str:
        summary = report["summary"]
        lines = [
            report["title"],
            f"Generated: {report['timestamp']}",
            f"Total Results: {summary['totalResults']}",
            f"Total Operations: {summary['totalOperations']}",
            f"Average Execution Time: {summary['averageExecutionTime']:.2f}ms",
            "",
        ]

        for result in report["results"]:
            lines.append(f"=== {result['title']} ===")
            lines.append(f"Timestamp: {result['timestamp']}")
            lines.append(result["content"])
            lines.append("")

        performance = report["performance"]
        if performance is not None:
            perf = performance["summary"]
            lines.append("=== PERFORMANCE SUMMARY ===")
            lines.append(f"Total Operations: {perf['totalOperations']}")
            lines.append(f"Average Execution Time: {perf['averageExecutionTime']:.2f}ms")
            lines.append(f"Peak Memory Usage: {perf['peakMemoryUsage'] / 1024:.2f} KB")

        return "\n".join(lines) + "\n"

    @staticmethod
    def _metrics_to_dataframe(snapshot: MetricSnapshot) -> pd.DataFrame:
        """Convert snapshot metrics to a DataFrame with the CSV column order."""
        return pd.DataFrame([m.to_dict() for m in snapshot.metrics], columns=CSV_COLUMNS)

    @staticmethod
    def _payload(body: str, stem: str, fmt: ExportFormat) -> ExportPayload:
        return ExportPayload(
            data=body.encode("utf-8"),
            filename=f"{stem}.{fmt.extension}",
            mime_type=fmt.mime_type,
        )

    @staticmethod
    def _get_html_template() -> Template:
        """Get HTML template.

        Returns:
            Jinja2 template.
        """
        template_str = """<!DOCTYPE html>
<html>
<head>
    <title>{{ report.title|e }}</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; }
        .header { background: #f0f0f0; padding: 20px; border-radius: 5px; }
        .result { margin: 20px 0; padding: 15px; border: 1px solid #ddd; border-radius: 5px; }
        .performance { background: #e8f4f8; padding: 15px; border-radius: 5px; }
        pre { background: #f5f5f5; padding: 10px; border-radius: 3px; overflow-x: auto; }
    </style>
</head>
<body>
    <div class="header">
        <h1>{{ report.title|e }}</h1>
        <p>Generated: {{ report.timestamp }}</p>
        <p>Total Results: {{ report.summary.totalResults }}</p>
        <p>Total Operations: {{ report.summary.totalOperations }}</p>
        <p>Average Execution Time: {{ "%.2f"|format(report.summary.averageExecutionTime) }}ms</p>
    </div>
{% for result in report.results %}
    <div class="result">
        <h3>{{ result.title|e }}</h3>
        <p>Timestamp: {{ result.timestamp }}</p>
        <pre>{{ result.content|e }}</pre>
    </div>
{% endfor %}
{% if report.performance %}
    <div class="performance">
        <h3>Performance Summary</h3>
        <p>Total Operations: {{ report.performance.summary.totalOperations }}</p>
        <p>Average Execution Time: {{ "%.2f"|format(report.performance.summary.averageExecutionTime) }}ms</p>
        <p>Peak Memory Usage: {{ "%.2f"|format(report.performance.summary.peakMemoryUsage / 1024) }} KB</p>
    </div>
{% endif %}
</body>
</html>
"""
        return Template(template_str)


def _coerce_format(fmt: ExportFormat | str) -> ExportFormat:
    try:
        return ExportFormat(fmt)
    except ValueError as e:
        raise InvalidArgument(f"Unknown export format: {fmt!r}") from e
