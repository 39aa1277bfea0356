"""Guided review orchestration: prompts in, structured replies out."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from guided_review.concepts import extract_concepts
from guided_review.config import settings
from guided_review.models import (
    EmbeddedQuestion,
    Message,
    SessionContext,
    SessionSummary,
    TutorReply,
)
from guided_review.pipeline import process_introduction, process_turn
from guided_review.prompts import (
    CORRECT_FEEDBACK,
    FEEDBACK_REQUEST,
    GUIDED_REVIEW_SYSTEM_PROMPT,
    INCORRECT_FEEDBACK,
    INTRODUCTION,
    SUMMARY,
    SUMMARY_REQUEST,
    build_session_memory,
)
from guided_review.sanitizer import sanitize
from guided_review.services.llm import CompletionClient, CompletionError
from guided_review.state import describe

log = logging.getLogger(__name__)

RESPONSE_MAX_TOKENS = 1200
FEEDBACK_MAX_TOKENS = 200
SUMMARY_MAX_TOKENS = 400
MASTERED_ACCURACY = 70  # percent

FIRST_QUESTION_NUDGE = "Try this practice question to test your understanding."
VARIETY_NUDGE = "You've answered a few questions. Here's one that tests the concept differently."


def suggest_follow_up(context: SessionContext) -> Optional[str]:
    """Passive nudge shown under a reply, driven only by how many questions were tried."""
    attempted = context.questions_attempted
    if attempted == 0:
        return FIRST_QUESTION_NUDGE
    if attempted % 3 == 0:
        return VARIETY_NUDGE
    return None


def accuracy_percent(attempted: int, correct: int) -> int:
    return round(correct / attempted * 100) if attempted > 0 else 0


class GuidedTutor:
    def __init__(self, client: CompletionClient):
        self.client = client

    def build_system_prompt(self, context: SessionContext) -> str:
        memory = f"{build_session_memory(context.previous_sessions)}\n\n{describe(context.state)}"
        return GUIDED_REVIEW_SYSTEM_PROMPT.format(
            subject=context.subject,
            topic=context.topic,
            level=context.student_level,
            weak_areas=", ".join(context.weak_areas) or "None identified",
            learning_style=context.learning_style,
            session_memory=memory,
        )

    def _history(self, history: Sequence[Message]) -> list[Message]:
        window = settings.HISTORY_WINDOW
        return list(history[-window:]) if window > 0 else []

    def respond(self, message: str, context: SessionContext) -> TutorReply:
        """One guided turn. CompletionError propagates to the caller."""
        messages = [
            Message(role="system", content=self.build_system_prompt(context)),
            *self._history(context.history),
            Message(role="user", content=message),
        ]
        raw = self.client.complete(messages, temperature=0.7, max_tokens=RESPONSE_MAX_TOKENS)
        turn = process_turn(raw, context.topic)
        log.info(
            f"[Tutor] Turn {context.state.exchange_count + 1}: "
            f"question={'yes' if turn.embedded_question else 'no'}, "
            f"chart={turn.chart.source_kind if turn.chart else 'none'}, "
            f"concepts={len(turn.concepts)}"
        )
        return TutorReply(**turn.model_dump(), suggested_follow_up=suggest_follow_up(context))

    def introduce(self, context: SessionContext) -> TutorReply:
        """Opening message for the topic; may carry a chart, never a question."""
        prompt = INTRODUCTION.format(
            topic=context.topic,
            subject=context.subject,
            level=context.student_level,
            learning_style=context.learning_style,
            mastery=round(context.mastery_level),
            session_memory=build_session_memory(context.previous_sessions),
        )
        messages = [
            Message(role="system", content=prompt),
            Message(role="user", content=f"Start my guided review of {context.topic}."),
        ]
        raw = self.client.complete(messages, temperature=0.7, max_tokens=RESPONSE_MAX_TOKENS)
        turn = process_introduction(raw, context.topic)
        return TutorReply(**turn.model_dump())

    def question_feedback(
        self,
        answer: str,
        question: EmbeddedQuestion,
        is_correct: bool,
        context: SessionContext,
    ) -> TutorReply:
        """Short feedback on an embedded question; falls back to fixed text if the service fails."""
        system = CORRECT_FEEDBACK if is_correct else INCORRECT_FEEDBACK.format(answer=answer)
        request = FEEDBACK_REQUEST.format(
            answer=answer,
            text=question.text,
            options=", ".join(f"{o.label}) {o.text}" for o in question.options),
            correct_answer=question.correct_answer,
            result="CORRECT" if is_correct else "INCORRECT",
            explanation=question.explanation,
        )
        messages = [
            Message(role="system", content=system),
            Message(role="user", content=request),
        ]
        try:
            raw = self.client.complete(messages, temperature=0.7, max_tokens=FEEDBACK_MAX_TOKENS)
        except CompletionError as e:
            log.warning(f"[Tutor] Feedback fell back to fixed text: {e}")
            if is_correct:
                fallback = f"Great job! {question.correct_answer} is correct. {question.explanation}"
            else:
                fallback = (
                    f"Not quite - the correct answer is {question.correct_answer}. "
                    f"{question.explanation} Let's try another one to practice."
                )
            return TutorReply(response=sanitize(fallback))

        text = sanitize(raw)
        return TutorReply(response=text, concepts=extract_concepts(text, context.topic))

    def summarize(
        self,
        context: SessionContext,
        attempted: int,
        correct: int,
        concepts: Sequence[str],
        minutes: int,
    ) -> SessionSummary:
        accuracy = accuracy_percent(attempted, correct)
        request = SUMMARY_REQUEST.format(
            topic=context.topic,
            subject=context.subject,
            minutes=minutes,
            attempted=attempted,
            correct=correct,
            accuracy=accuracy,
            concepts=", ".join(concepts) or "General review",
            weak_areas=", ".join(context.weak_areas) or "None identified",
        )
        messages = [
            Message(role="system", content=SUMMARY),
            Message(role="user", content=request),
        ]
        try:
            return self.client.complete_structured(
                messages,
                SessionSummary,
                name="generate_session_summary",
                description="Generate a session summary for guided review",
                temperature=0.7,
                max_tokens=SUMMARY_MAX_TOKENS,
            )
        except CompletionError as e:
            log.warning(f"[Tutor] Summary fell back to fixed text: {e}")

        mastered = accuracy >= MASTERED_ACCURACY
        return SessionSummary(
            summary=(
                f"You spent {minutes} minutes reviewing {context.topic} and answered "
                f"{correct} of {attempted} questions correctly."
            ),
            concepts_mastered=[context.topic] if mastered else [],
            concepts_needing_work=[] if mastered else [context.topic],
            recommended_next_steps=[f"Continue practicing {context.topic}", "Try related topics"],
            overall_progress="Keep up the good work! Consistent practice leads to improvement.",
        )
