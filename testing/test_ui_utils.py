"""Tests for UI helper utilities."""

from guided_review.charts import synthesize
from guided_review.models import EmbeddedQuestion, PolygonConfig, RectangleConfig
from guided_review.ui_utils import (
    category_key,
    condense_stage_timeline,
    format_question,
    long_records,
    polygon_edges,
    rectangle_cells,
    summarize_traces,
    value_keys,
)


def test_format_question_lists_options():
    question = EmbeddedQuestion(
        text="What is 2+2?",
        options=[{"label": "A", "text": "3"}, {"label": "B", "text": "4"}],
        correct_answer="B",
    )

    assert format_question(question) == "What is 2+2?\n  A) 3\n  B) 4"


def test_long_records_melts_multi_series_bars():
    series = synthesize(
        {
            "kind": "bar",
            "data": [{"month": "Jan", "sales": 3, "returns": 1}, {"month": "Feb", "sales": 5, "returns": 0}],
            "dataKeys": ["sales", "returns"],
        }
    )

    assert category_key(series) == "month"
    assert long_records(series) == [
        {"category": "Jan", "series": "sales", "value": 3},
        {"category": "Jan", "series": "returns", "value": 1},
        {"category": "Feb", "series": "sales", "value": 5},
        {"category": "Feb", "series": "returns", "value": 0},
    ]


def test_value_keys_inferred_for_histograms():
    series = synthesize({"kind": "histogram", "data": [{"bin": "0-10", "count": 4}]})

    assert value_keys(series) == ["count"]
    assert long_records(series) == [{"category": "0-10", "series": "count", "value": 4}]


def test_polygon_edges_close_the_outline_and_flip_y():
    polygon = PolygonConfig(
        points=[{"x": 10, "y": 90}, {"x": 90, "y": 90}, {"x": 50, "y": 10}],
        extra_lines=[{"from": 2, "to": 0, "dashed": True}, {"from": 0, "to": 9}],
    )

    edges = polygon_edges(polygon)

    sides = [e for e in edges if e["edge"].startswith("side")]
    extras = [e for e in edges if e["edge"].startswith("extra")]
    assert len(sides) == 6
    assert (sides[-1]["x"], sides[-1]["y"]) == (10, 10)
    assert [(e["x"], e["y"], e["dashed"]) for e in extras] == [(50, 90, True), (10, 10, True)]


def test_polygon_edges_need_two_points():
    assert polygon_edges(PolygonConfig(points=[{"x": 1, "y": 1}])) == []


def test_rectangle_cells_mark_shading_row_major():
    cells = rectangle_cells(RectangleConfig(rows=2, cols=2, shaded_cells=[1, 2]))

    assert [(c["row"], c["col"], c["shaded"]) for c in cells] == [
        (0, 0, False),
        (0, 1, True),
        (1, 0, True),
        (1, 1, False),
    ]
    assert cells[1]["fill"] == "#c7d2fe"
    assert cells[0]["fill"] == "#fff"


def test_condense_stage_timeline_dedupes_consecutive_stages():
    events = [
        {"stage": "Introduction"},
        {"stage": "Tutor"},
        {"stage": "Tutor"},
        {"stage": ""},
        {"stage": "Feedback"},
        {"stage": "Tutor"},
    ]

    assert condense_stage_timeline(events) == ["Introduction", "Tutor", "Feedback", "Tutor"]


def test_summarize_traces_aggregates_sessions():
    traces = {
        "s-1": [
            {"stage": "Introduction", "question": False, "chart": "linear", "concepts": ["Slope"]},
            {"stage": "Tutor", "question": True, "chart": None, "concepts": ["Slope", "vertex"]},
        ],
        "s-2": [
            {"stage": "Introduction", "question": False, "chart": "linear", "concepts": []},
            {"stage": "Tutor", "question": True, "chart": "bar", "concepts": ["vertex"]},
        ],
    }

    summary = summarize_traces(traces)

    assert summary["sessions"] == 2
    assert summary["turns"] == 4
    assert summary["question_rate"] == 0.5
    assert summary["chart_kinds"] == {"linear": 2, "bar": 1}
    assert summary["top_concepts"][:2] == ["Slope", "vertex"]


def test_summarize_traces_empty():
    assert summarize_traces({}) == {
        "sessions": 0,
        "turns": 0,
        "question_rate": 0.0,
        "chart_kinds": {},
        "top_concepts": [],
    }
