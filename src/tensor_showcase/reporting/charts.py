"""Chart sink rendering chart data with plotly."""

from typing import Optional, Protocol

import plotly.graph_objects as go
from loguru import logger

from ..tensors.utils import ChartData, ChartKind
from .formats import ExportFormat, ExportPayload


class ChartSink(Protocol):
    """Anything that can render chart data."""

    def render(self, chart: ChartData) -> None:
        ...


class PlotlyChartSink:
    """Builds a plotly figure for each chart and keeps the most recent one."""

    def __init__(self, title: str = "Tensor Visualization", height: int = 400) -> None:
        self.title = title
        self.height = height
        self.figure: Optional[go.Figure] = None
        self.last_chart: Optional[ChartData] = None

    def render(self, chart: ChartData) -> None:
        self.figure = self._build_figure(chart)
        self.last_chart = chart
        logger.debug(f"Rendered {chart.kind.value} chart with {len(chart.series)} series")

    def export_html(self, filename: str = "chart.html") -> ExportPayload:
        """Export the current figure as a standalone HTML page."""
        if self.figure is None:
            html = "<p>No chart data available</p>"
        else:
            html = self.figure.to_html(full_html=True, include_plotlyjs="cdn")
        return ExportPayload(
            data=html.encode("utf-8"),
            filename=filename,
            mime_type=ExportFormat.HTML.mime_type,
        )

    def _build_figure(self, chart: ChartData) -> go.Figure:
        fig = go.Figure()

        if chart.kind is ChartKind.LINE:
            for series in chart.series:
                fig.add_trace(go.Scatter(
                    x=chart.labels,
                    y=series.values,
                    mode="lines+markers",
                    name=series.label,
                    line=dict(color="rgb(75, 192, 192)", width=2),
                ))
        elif chart.kind is ChartKind.BAR:
            for series in chart.series:
                fig.add_trace(go.Bar(
                    x=chart.labels,
                    y=series.values,
                    name=series.label,
                ))
            fig.update_layout(barmode="group")
        elif chart.kind is ChartKind.DOUGHNUT:
            values = chart.series[0].values if chart.series else []
            fig.add_trace(go.Pie(labels=chart.labels, values=values, hole=0.5))
        else:
            raise ValueError(f"Unhandled chart kind: {chart.kind}")

        fig.update_layout(
            title=self.title,
            template="plotly_white",
            height=self.height,
        )
        return fig
