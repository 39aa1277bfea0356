"""Per-turn interpretation of a raw model reply.

    raw -> sanitize -> <question> -> <graph> -> synthesize
        -> clean broken visual references -> sanitize -> tag concepts

Every failure inside a turn degrades to "omit the structured extra, keep
the prose"; nothing here raises for string input.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from guided_review.blocks import CHART_TAG, QUESTION_TAG, extract_block
from guided_review.charts import synthesize
from guided_review.concepts import extract_concepts
from guided_review.models import EmbeddedQuestion, TurnResult
from guided_review.references import clean_broken_references
from guided_review.sanitizer import sanitize

log = logging.getLogger(__name__)


def build_question(payload: Any) -> Optional[EmbeddedQuestion]:
    """Validate a parsed question block; None when it breaks the question invariants."""
    if not isinstance(payload, Mapping):
        if payload is not None:
            log.warning(f"[Pipeline] Question payload is not an object: {type(payload).__name__}")
        return None
    # Ids are ours to assign, whatever the model wrote.
    fields = {key: value for key, value in payload.items() if key != "id"}
    try:
        return EmbeddedQuestion.model_validate(fields)
    except ValidationError as exc:
        log.warning(f"[Pipeline] Dropped invalid question block: {exc.error_count()} error(s)")
        return None


def process_turn(raw_text: str, session_topic: str) -> TurnResult:
    """Turn one raw reply into prose plus optional question, chart and concept tags."""
    text = sanitize(raw_text)

    text, question_payload = extract_block(text, QUESTION_TAG)
    question = build_question(question_payload)

    text, chart_payload = extract_block(text, CHART_TAG)
    chart = synthesize(chart_payload) if chart_payload is not None else None

    text = clean_broken_references(text, chart is not None)
    text = sanitize(text)

    return TurnResult(
        response=text,
        embedded_question=question,
        chart=chart,
        concepts=extract_concepts(text, session_topic),
    )


def process_introduction(raw_text: str, topic: str) -> TurnResult:
    """Topic introductions may carry a chart but never a question."""
    text = sanitize(raw_text)

    # A stray question block is still cut so its JSON never reaches the student.
    text, _ = extract_block(text, QUESTION_TAG)

    text, chart_payload = extract_block(text, CHART_TAG)
    chart = synthesize(chart_payload) if chart_payload is not None else None

    text = clean_broken_references(text, chart is not None)
    return TurnResult(response=sanitize(text), chart=chart, concepts=[topic])
