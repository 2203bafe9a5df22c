"""Report serialization, export sinks and chart rendering."""

from .charts import ChartSink, PlotlyChartSink
from .exporter import ReportExporter
from .formats import ExportFormat, ExportPayload
from .sinks import ExportSink, FileSink, MemorySink

__all__ = [
    "ChartSink",
    "PlotlyChartSink",
    "ReportExporter",
    "ExportFormat",
    "ExportPayload",
    "ExportSink",
    "FileSink",
    "MemorySink",
]
