"""Derived views of the client state: chart series, table rows and panels.

These are plain functions of the state so that both frontends (the FastAPI
page and the Streamlit script) show exactly the same thing.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from text_analysis.view import ClientView


TOXICITY_TYPE = "Toxicity"
EDUCATION_TYPE = "Education"

TOXICITY_SERIES = "Toxicity Score"
EDUCATION_SERIES = "Education Score"

Panel = List[Tuple[str, str]]


@dataclass(frozen=True)
class ChartSeries:
    label: str
    data: List[float]


@dataclass(frozen=True)
class ChartData:
    """Line chart data: a category axis and one series per result type.

    Notes
    -----
    Every log entry contributes a label, but each series only holds the scores
    of its own result type. The series are therefore usually shorter than the
    label axis, and point ``i`` of a series is drawn under label ``i`` whatever
    log entry that label belongs to. Known display quirk, kept as is.
    """

    labels: List[str]
    datasets: List[ChartSeries]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _series(logs: Sequence[Dict[str, Any]], result_type: str) -> List[float]:
    return [log.get("score") or 0 for log in logs if log.get("result_type") == result_type]


def chart_data(logs: Sequence[Dict[str, Any]]) -> ChartData:
    """Build the chart data for a log history.

    Examples
    --------
    >>> logs = [
    ...     {"id": 1, "result_type": "Toxicity", "score": 0.8},
    ...     {"id": 2, "result_type": "Education", "score": 5},
    ...     {"id": 3, "result_type": "Toxicity", "score": None},
    ... ]
    >>> chart = chart_data(logs)
    >>> chart.labels
    ['Log 1', 'Log 2', 'Log 3']
    >>> [s.data for s in chart.datasets]
    [[0.8, 0], [5]]
    """
    return ChartData(
        labels=[f"Log {log.get('id')}" for log in logs],
        datasets=[
            ChartSeries(TOXICITY_SERIES, _series(logs, TOXICITY_TYPE)),
            ChartSeries(EDUCATION_SERIES, _series(logs, EDUCATION_TYPE)),
        ],
    )


def format_number(value: Any) -> str:
    """Show a number the way the browser would, without rounding.

    >>> format_number(0.8), format_number(5.0), format_number(0)
    ('0.8', '5', '0')
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_score(score: Any) -> str:
    """Table cell for a log score: ``"N/A"`` only for a missing score."""
    if score is None:
        return "N/A"
    return format_number(score)


def table_rows(logs: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [
        {
            "ID": format_number(log.get("id")),
            "Text": _field(log.get("text")),
            "Result Type": _field(log.get("result_type")),
            "Score": format_score(log.get("score")),
        }
        for log in logs
    ]


def _field(value: Any) -> str:
    if value is None:
        return ""
    return format_number(value)


def toxicity_panel(result: Optional[Dict[str, Any]]) -> Optional[Panel]:
    if result is None:
        return None
    probabilities = result.get("probabilities") or {}
    return [
        ("Text", _field(result.get("text"))),
        ("Predicted Class", _field(result.get("predicted_class"))),
        ("Score (Toxicity)", _field(result.get("score"))),
        ("Neutral Score", _field(probabilities.get("Neutral"))),
    ]


def edu_score_panel(result: Optional[Dict[str, Any]]) -> Optional[Panel]:
    if result is None:
        return None
    score = result.get("score")
    return [
        ("Text", _field(result.get("text"))),
        ("Score", f"{float(score):.2f}" if score is not None else ""),
        ("Integer Score", _field(result.get("int_score"))),
    ]


def snapshot(view: ClientView) -> Dict[str, Any]:
    """Everything the page needs to render, as a JSON-ready dict."""
    tox = toxicity_panel(view.toxicity_result)
    edu = edu_score_panel(view.edu_score_result)
    return {
        "text": view.text,
        "error": view.error,
        "busy": view.analyzing,
        "toxicity_result": view.toxicity_result,
        "edu_score_result": view.edu_score_result,
        "toxicity_panel": [list(row) for row in tox] if tox is not None else None,
        "edu_score_panel": [list(row) for row in edu] if edu is not None else None,
        "logs": view.logs,
        "table": table_rows(view.logs),
        "chart": chart_data(view.logs).to_dict(),
    }
