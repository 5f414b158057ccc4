"""Plotly rendering of the score chart (used by the Streamlit frontend)."""

from __future__ import annotations

import plotly.graph_objects as go

from text_analysis.rendering import EDUCATION_SERIES, TOXICITY_SERIES, ChartData


SERIES_COLORS = {
    TOXICITY_SERIES: ("rgba(255, 99, 132, 1)", "rgba(255, 99, 132, 0.2)"),
    EDUCATION_SERIES: ("rgba(54, 162, 235, 1)", "rgba(54, 162, 235, 0.2)"),
}


def score_figure(chart: ChartData) -> go.Figure:
    """Line chart of both score series over the shared "Log {id}" axis.

    Point ``i`` of each series is placed on label ``i``, like a category
    chart does when a series is shorter than its labels.
    """
    fig = go.Figure()
    for series in chart.datasets:
        line, fill = SERIES_COLORS.get(series.label, (None, None))
        fig.add_trace(
            go.Scatter(
                x=chart.labels[: len(series.data)],
                y=series.data,
                name=series.label,
                mode="lines+markers",
                line={"color": line},
                fill="tozeroy",
                fillcolor=fill,
            )
        )
    fig.update_layout(
        title="Toxicity and Education Scores Over Logs",
        legend={"orientation": "h", "y": 1.1},
        xaxis={"title": "Log ID", "type": "category", "categoryorder": "array", "categoryarray": chart.labels},
    )
    return fig
