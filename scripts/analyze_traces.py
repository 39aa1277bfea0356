#!/usr/bin/env python3
"""Summarize recorded guided review sessions for offline quality checks."""

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from guided_review.config import settings
from guided_review.services.trace_store import TraceStore
from guided_review.ui_utils import condense_stage_timeline, summarize_traces


def analyze_traces(path: Path = Path(settings.TRACE_PATH)):
    if not path.exists():
        print("No session traces found. Run python -m guided_review.main first.")
        return

    traces = TraceStore(path).load()
    if not traces:
        print("No sessions recorded yet.")
        return

    summary = summarize_traces(traces)
    print(f"\n{'='*60}")
    print(f"SESSION TRACE ANALYSIS ({summary['sessions']} sessions, {summary['turns']} turns)")
    print(f"{'='*60}\n")

    print(f"{'Session':<32} {'Turns':<6} {'Questions':<10} {'Charts':<6}")
    print("-" * 60)
    for session_id, events in traces.items():
        questions = sum(1 for e in events if e.get("question"))
        charts = sum(1 for e in events if e.get("chart"))
        print(f"{session_id[:31]:<32} {len(events):<6} {questions:<10} {charts:<6}")
    print("-" * 60)

    print(f"\nQuestion rate: {summary['question_rate']:.0%}")
    if summary["chart_kinds"]:
        kinds = ", ".join(f"{kind} x{count}" for kind, count in summary["chart_kinds"].items())
        print(f"Charts drawn:  {kinds}")
    if summary["top_concepts"]:
        print(f"Top concepts:  {', '.join(summary['top_concepts'])}")

    # Sessions that never left the introduction usually mean an upstream failure.
    stalled = [sid for sid, events in traces.items() if condense_stage_timeline(events) == ["Introduction"]]
    if stalled:
        print(f"\nStalled after introduction: {', '.join(stalled)}")

    print(f"\n{'='*60}\n")


if __name__ == "__main__":
    analyze_traces()
