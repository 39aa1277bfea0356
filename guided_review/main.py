#!/usr/bin/env python3
"""Guided review - terminal session runner.

Usage:
    python -m guided_review.main --topic "Linear Equations"        # Interactive session
    python -m guided_review.main --topic Triangles --level 7       # Pick a student level
    python -m guided_review.main --replay reply.txt --topic Slope  # Process a saved raw reply
"""

import argparse
import logging
import time
import uuid
from pathlib import Path
from typing import Callable, Optional

from guided_review.config import settings
from guided_review.models import EmbeddedQuestion, Message, SessionContext, TurnResult
from guided_review.pipeline import process_turn
from guided_review.services.llm import CompletionClient
from guided_review.services.trace_store import TraceStore, turn_event
from guided_review.services.tutor import GuidedTutor
from guided_review.state import (
    QUESTION_TYPES,
    TurnOutcome,
    advance,
    is_checkpoint_due,
    unused_question_types,
)
from guided_review.ui_utils import format_question

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
log = logging.getLogger(__name__)

EXIT_WORDS = {"quit", "exit", "done"}


def replay(path: Path, topic: str) -> TurnResult:
    """Push a saved raw reply through the turn pipeline; no API key needed."""
    raw = path.read_text(encoding="utf-8")
    return process_turn(raw, topic)


def _answer_label(line: str, question: EmbeddedQuestion) -> Optional[str]:
    """Return the option label the student typed, if the line is just a label."""
    candidate = line.strip().rstrip(").").upper()
    labels = {option.label.upper(): option.label for option in question.options}
    return labels.get(candidate)


def _next_question_type(context: SessionContext) -> str:
    """Format credited to a question the tutor just asked, following the rotation."""
    if context.state.current_concept != context.topic:
        return QUESTION_TYPES[0]
    remaining = unused_question_types(context.state)
    return remaining[0] if remaining else QUESTION_TYPES[0]


def run_session(
    tutor: GuidedTutor,
    context: SessionContext,
    trace_store: TraceStore,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> SessionContext:
    """Run one interactive session until the student quits. Returns the final context."""
    session_id = f"{context.topic}-{uuid.uuid4().hex[:8]}"
    started = time.monotonic()
    events: list[dict] = []
    concepts: list[str] = []
    pending: Optional[EmbeddedQuestion] = None

    log.info(f"[{session_id}] Starting: {context.topic} ({context.subject})")
    try:
        intro = tutor.introduce(context)
        write(intro.response)
        context.history.append(Message(role="assistant", content=intro.response))
        events.append(turn_event("Introduction", intro, context.state))

        while True:
            try:
                line = read_line("> ").strip()
            except EOFError:
                break
            if not line:
                continue
            if line.lower() in EXIT_WORDS:
                break

            label = _answer_label(line, pending) if pending else None
            if pending and label:
                is_correct = label == pending.correct_answer
                reply = tutor.question_feedback(label, pending, is_correct, context)
                context.questions_attempted += 1
                context.questions_correct += int(is_correct)
                outcome = TurnOutcome(correct=is_correct, answer=label, concept=context.topic)
                stage = "Feedback"
                pending = None
            else:
                checkpoint = is_checkpoint_due(context.state)
                reply = tutor.respond(line, context)
                asked = _next_question_type(context) if reply.embedded_question else None
                outcome = TurnOutcome(checkpoint=checkpoint, concept=context.topic, question_type=asked)
                stage = "Tutor"
                if reply.embedded_question:
                    pending = reply.embedded_question

            write(reply.response)
            if stage == "Tutor" and reply.embedded_question:
                write(format_question(reply.embedded_question))
            if reply.suggested_follow_up:
                write(f"({reply.suggested_follow_up})")

            context.history.append(Message(role="user", content=line))
            context.history.append(Message(role="assistant", content=reply.response))
            context.state = advance(context.state, outcome)
            concepts.extend(c for c in reply.concepts if c not in concepts)
            events.append(turn_event(stage, reply, context.state))

        minutes = round((time.monotonic() - started) / 60)
        summary = tutor.summarize(
            context, context.questions_attempted, context.questions_correct, concepts, minutes
        )
        write(summary.summary)
        for step in summary.recommended_next_steps:
            write(f"- {step}")
        log.info(
            f"[{session_id}] === Session Complete: {context.questions_correct}/"
            f"{context.questions_attempted} correct, {context.state.exchange_count} exchanges ==="
        )
    finally:
        if events:
            trace_store.append_events(session_id, events)

    return context


def main():
    parser = argparse.ArgumentParser(description="Guided review tutor")
    parser.add_argument("--topic", type=str, default="Linear Equations")
    parser.add_argument("--subject", type=str, default="Math")
    parser.add_argument("--level", type=int, default=5, help="Student level 1-10 (default: 5)")
    parser.add_argument(
        "--replay",
        type=Path,
        default=None,
        help="Process a saved raw reply and print the structured result",
    )
    args = parser.parse_args()

    if args.replay:
        result = replay(args.replay, args.topic)
        print(result.model_dump_json(by_alias=True, indent=2))
        return result

    log.info(f"Config: model={settings.OPENAI_MODEL}, topic={args.topic}, level={args.level}")
    try:
        client = CompletionClient()
    except ValueError as e:
        parser.error(str(e))

    context = SessionContext(subject=args.subject, topic=args.topic, student_level=args.level)
    return run_session(GuidedTutor(client), context, TraceStore())


if __name__ == "__main__":
    main()
