"""Helpers for the CLI and the Streamlit console."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from guided_review.models import ChartSeries, EmbeddedQuestion, PolygonConfig, RectangleConfig


def format_question(question: EmbeddedQuestion) -> str:
    """Plain-text rendering of an embedded question for the terminal."""
    lines = [question.text]
    lines.extend(f"  {option.label}) {option.text}" for option in question.options)
    return "\n".join(lines)


def value_keys(series: ChartSeries) -> list[str]:
    """Numeric fields to plot: the declared data keys, else the numeric fields of the first record."""
    if series.data_keys:
        return list(series.data_keys)
    if series.data:
        numeric = [k for k, v in series.data[0].items() if isinstance(v, (int, float)) and not isinstance(v, bool)]
        if numeric:
            return numeric
    return ["value"]


def category_key(series: ChartSeries) -> str:
    """Guess the field that names each category in bar and pie data."""
    numeric = set(value_keys(series))
    for record in series.data:
        for key, value in record.items():
            if key not in numeric and isinstance(value, str):
                return key
    return "name"


def long_records(series: ChartSeries) -> list[dict[str, Any]]:
    """Melt bar data into one ``{category, series, value}`` record per bar."""
    key = category_key(series)
    records = []
    for record in series.data:
        for data_key in value_keys(series):
            if data_key in record:
                records.append(
                    {"category": str(record.get(key, "")), "series": data_key, "value": record[data_key]}
                )
    return records


def polygon_edges(polygon: PolygonConfig) -> list[dict[str, Any]]:
    """Outline of the figure as ordered line segments, closed back to the first vertex.

    Extra lines (``{"from": i, "to": j}`` vertex indices) follow the outline.
    The viewBox runs top-down, so y is flipped for a regular chart axis.
    """
    points = [p for p in polygon.points if "x" in p and "y" in p]
    edges: list[dict[str, Any]] = []
    if len(points) < 2:
        return edges

    for i, start in enumerate(points):
        end = points[(i + 1) % len(points)]
        for order, point in enumerate((start, end)):
            edges.append(
                {"edge": f"side-{i}", "order": order, "x": point["x"], "y": 100 - point["y"], "dashed": False}
            )

    for j, line in enumerate(polygon.extra_lines):
        start_index, end_index = line.get("from"), line.get("to")
        if not isinstance(start_index, int) or not isinstance(end_index, int):
            continue
        if not (0 <= start_index < len(points) and 0 <= end_index < len(points)):
            continue
        for order, point in enumerate((points[start_index], points[end_index])):
            edges.append(
                {
                    "edge": f"extra-{j}",
                    "order": order,
                    "x": point["x"],
                    "y": 100 - point["y"],
                    "dashed": bool(line.get("dashed")),
                }
            )
    return edges


def rectangle_cells(rectangle: RectangleConfig) -> list[dict[str, Any]]:
    """One record per grid cell, row-major, with its shading."""
    shaded = set(rectangle.shaded_cells)
    return [
        {
            "row": row,
            "col": col,
            "shaded": row * rectangle.cols + col in shaded,
            "fill": rectangle.shaded_color if row * rectangle.cols + col in shaded else rectangle.empty_color,
        }
        for row in range(rectangle.rows)
        for col in range(rectangle.cols)
    ]


def condense_stage_timeline(events: Iterable[dict[str, Any]]) -> list[str]:
    """Return the stage sequence with consecutive duplicates removed."""
    timeline: list[str] = []
    for event in events:
        stage = str(event.get("stage", "")).strip()
        if not stage:
            continue
        if not timeline or timeline[-1] != stage:
            timeline.append(stage)
    return timeline


def summarize_traces(traces: dict[str, list[dict[str, Any]]]) -> dict[str, Any]:
    """Aggregate stored turn events across sessions."""
    turns = [event for events in traces.values() for event in events]
    charts = Counter(event["chart"] for event in turns if event.get("chart"))
    concepts = Counter(c for event in turns for c in event.get("concepts", []))
    with_question = sum(1 for event in turns if event.get("question"))
    return {
        "sessions": len(traces),
        "turns": len(turns),
        "question_rate": with_question / len(turns) if turns else 0.0,
        "chart_kinds": dict(charts.most_common()),
        "top_concepts": [concept for concept, _ in concepts.most_common(5)],
    }
