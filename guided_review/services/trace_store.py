"""Per-session turn diagnostics for offline quality monitoring."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from guided_review.config import settings
from guided_review.models import TurnResult
from guided_review.state import ConversationState

Traces = dict[str, list[dict[str, Any]]]


def turn_event(
    stage: str,
    turn: TurnResult,
    state: ConversationState,
    raw_length: Optional[int] = None,
) -> dict[str, Any]:
    """Flatten one processed turn into a JSON-friendly trace event."""
    event: dict[str, Any] = {
        "stage": stage,
        "exchange": state.exchange_count,
        "question": turn.embedded_question is not None,
        "chart": turn.chart.source_kind if turn.chart else None,
        "concepts": list(turn.concepts),
        "response_length": len(turn.response),
        "scaffolding": state.scaffolding_level,
    }
    if raw_length is not None:
        event["raw_length"] = raw_length
    return event


class TraceStore:
    """Store turn events per session in a JSON file."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.TRACE_PATH)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> Traces:
        """Load stored traces; a missing or unreadable file counts as empty."""
        if not self.path.exists():
            return {}
        try:
            data: Any = json.loads(self.path.read_text())
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, traces: Traces) -> None:
        self.path.write_text(json.dumps(traces, indent=2))

    def append_events(self, session_id: str, events: list[dict[str, Any]]) -> Traces:
        """Append events to a session's trace and return merged data."""
        traces = self.load()
        traces.setdefault(session_id, [])
        traces[session_id].extend(events)
        self.save(traces)
        return traces
