"""Streamlit console for inspecting processed tutor replies."""

from __future__ import annotations

import sys
from pathlib import Path

import altair as alt
import streamlit as st

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from guided_review.config import settings
from guided_review.models import ChartSeries
from guided_review.pipeline import process_turn
from guided_review.services.trace_store import TraceStore
from guided_review.ui_utils import (
    category_key,
    condense_stage_timeline,
    long_records,
    polygon_edges,
    rectangle_cells,
    summarize_traces,
    value_keys,
)

TRACE_STORE = TraceStore(ROOT_DIR / settings.TRACE_PATH)
SAMPLE_REPLIES = {
    "Linear graph": (
        "Let's look at y = 2x + 1. Here's a graph of the line:\n"
        '<graph>{"type": "linear", "m": 2, "b": 1, "xDomain": [-5, 5]}</graph>\n'
        "Where does it cross the y-axis?"
    ),
    "Question with comments": (
        "Quick check on slope.\n"
        "<question>\n"
        "{\n"
        '  "text": "What is the slope of y = 3x + 1?", // the stem\n'
        '  "options": [{"label": "A", "text": "1"}, {"label": "B", "text": "3"}],\n'
        '  "correctAnswer": "B",\n'
        '  "explanation": "The slope multiplies x."\n'
        "}\n"
        "</question>"
    ),
    "Broken visual promise": "Here's a diagram of an isosceles triangle: notice the two equal sides.",
    "Corrupted text": "3.They−interceptis10, which means the line starts at 10.",
}


def init_state() -> None:
    """Initialize Streamlit session state keys."""
    st.session_state.setdefault("raw_reply", SAMPLE_REPLIES["Linear graph"])
    st.session_state.setdefault("result", None)


def build_chart(series: ChartSeries) -> alt.Chart | None:
    """Translate a synthesized series into an altair chart."""
    x_scale = alt.Scale(domain=list(series.x_domain)) if series.x_domain else alt.Undefined
    y_scale = alt.Scale(domain=list(series.y_domain)) if series.y_domain else alt.Undefined

    if series.kind in ("line", "scatter"):
        base = alt.Chart(alt.Data(values=series.data))
        mark = base.mark_line() if series.kind == "line" else base.mark_circle(size=80)
        chart = mark.encode(
            x=alt.X("x:Q", title=series.x_label, scale=x_scale),
            y=alt.Y("y:Q", title=series.y_label, scale=y_scale),
        )
        if series.annotations:
            points = [a.model_dump() for a in series.annotations]
            marks = alt.Chart(alt.Data(values=points)).encode(x="x:Q", y="y:Q")
            chart = chart + marks.mark_point(filled=True, size=90, color="#ef4444") + marks.mark_text(
                align="left", dx=8, dy=-8
            ).encode(text="label:N")
        return chart.properties(title=series.title, height=320)

    if series.kind in ("bar", "histogram"):
        return (
            alt.Chart(alt.Data(values=long_records(series)))
            .mark_bar()
            .encode(
                x=alt.X("category:N", title=series.x_label, sort=None),
                y=alt.Y("value:Q", title=series.y_label),
                color=alt.Color("series:N", legend=None if len(value_keys(series)) == 1 else alt.Undefined),
                xOffset="series:N",
            )
            .properties(title=series.title, height=320)
        )

    if series.kind == "pie":
        key = category_key(series)
        return (
            alt.Chart(alt.Data(values=series.data))
            .mark_arc()
            .encode(theta=f"{value_keys(series)[0]}:Q", color=f"{key}:N")
            .properties(title=series.title, height=320)
        )

    if series.kind == "polygon" and series.polygon:
        domain = alt.Scale(domain=[0, 100])
        return (
            alt.Chart(alt.Data(values=polygon_edges(series.polygon)))
            .mark_line(color=series.polygon.stroke_color)
            .encode(
                x=alt.X("x:Q", scale=domain, axis=None),
                y=alt.Y("y:Q", scale=domain, axis=None),
                detail="edge:N",
                order="order:Q",
                strokeDash=alt.condition("datum.dashed", alt.value([4, 4]), alt.value([1, 0])),
            )
            .properties(title=series.title, width=series.polygon.width, height=series.polygon.height)
        )

    if series.kind == "fraction-rectangle" and series.rectangle:
        return (
            alt.Chart(alt.Data(values=rectangle_cells(series.rectangle)))
            .mark_rect(stroke=series.rectangle.outline_color)
            .encode(
                x=alt.X("col:O", axis=None),
                y=alt.Y("row:O", axis=None),
                color=alt.Color("fill:N", scale=None),
            )
            .properties(title=series.rectangle.caption or series.title, height=160)
        )

    return None


st.set_page_config(page_title="Guided Review Console", layout="wide")
init_state()

st.title("Guided Review Console")
st.caption("Paste a raw model reply to see what the student would receive.")

with st.sidebar:
    st.subheader("Session")
    topic = st.text_input("Session topic", value="Linear Equations")
    sample = st.selectbox("Load sample reply", ["(keep current)"] + list(SAMPLE_REPLIES))
    if sample != "(keep current)" and st.button("Load sample"):
        st.session_state["raw_reply"] = SAMPLE_REPLIES[sample]

left, right = st.columns([2, 1], gap="large")

with left:
    raw = st.text_area("Raw reply", key="raw_reply", height=220)
    if st.button("Process reply", type="primary"):
        st.session_state["result"] = process_turn(raw, topic)

    result = st.session_state.get("result")
    if result is None:
        st.info("Process a reply to see the cleaned prose, question and chart.")
    else:
        st.markdown("**Student sees**")
        st.markdown(result.response or "_(empty)_")

        if result.chart:
            chart = build_chart(result.chart)
            if chart is not None:
                st.altair_chart(chart, use_container_width=result.chart.kind not in ("polygon",))

        if result.embedded_question:
            question = result.embedded_question
            st.markdown("**Embedded question**")
            choice = st.radio(
                question.text,
                [option.label for option in question.options],
                format_func=lambda label: next(
                    f"{o.label}) {o.text}" for o in question.options if o.label == label
                ),
                index=None,
            )
            if choice:
                if choice == question.correct_answer:
                    st.success("Correct")
                else:
                    st.error(f"Not quite - the answer is {question.correct_answer}")
            with st.expander("Explanation"):
                st.write(question.explanation or "(none given)")

        st.markdown("**Concepts**")
        st.write(", ".join(result.concepts) or "(none)")

        with st.expander("Structured result"):
            st.json(result.model_dump(mode="json", by_alias=True))

with right:
    st.subheader("Session traces")
    traces = TRACE_STORE.load()
    if traces:
        summary = summarize_traces(traces)
        metric_cols = st.columns(2)
        metric_cols[0].metric("Sessions", summary["sessions"])
        metric_cols[1].metric("Question rate", f"{summary['question_rate']:.0%}")
        if summary["chart_kinds"]:
            st.markdown("**Charts drawn**")
            st.json(summary["chart_kinds"])
        session_id = st.selectbox("Session", sorted(traces))
        st.caption(" → ".join(condense_stage_timeline(traces[session_id])))
        with st.expander("Full session trace"):
            st.dataframe(traces[session_id], use_container_width=True)
    else:
        st.info("Run `python -m guided_review.main` to record session traces.")
