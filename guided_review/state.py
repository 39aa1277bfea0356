"""Per-session pacing and mastery state.

The state is an immutable value: the orchestration layer observes each
turn's outcome and calls ``advance`` to obtain the next state, then hands
``describe(state)`` to the prompt layer. The read-only signals below are
pure functions of the state.
"""

from __future__ import annotations

from typing import FrozenSet, Literal, Optional, Tuple, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

QuestionType = Literal[
    "computation", "recognition", "conceptual", "application", "reverse", "prediction"
]
ErrorType = Literal[
    "arithmetic", "notation_misread", "concept_confusion", "procedure_error", "careless", "unknown"
]

QUESTION_TYPES: Tuple[str, ...] = get_args(QuestionType)
ERROR_TYPES: Tuple[str, ...] = get_args(ErrorType)

MASTERY_STREAK = 3  # consecutive correct answers
MASTERY_QUESTIONS = 3  # questions asked on the current concept
CHECKPOINT_INTERVAL = 4  # exchanges between comprehension checkpoints
MAX_SCAFFOLDING = 3


class ConversationState(BaseModel):
    """Session state carried between guided turns."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    consecutive_correct: int = Field(default=0, ge=0)
    last_question_type: Optional[QuestionType] = None
    question_types_used: Tuple[QuestionType, ...] = ()
    questions_this_concept: int = Field(default=0, ge=0)
    current_concept: Optional[str] = None
    last_error_type: Optional[ErrorType] = None
    error_count: int = Field(default=0, ge=0)
    concept_checkpoints: int = Field(default=0, ge=0)
    last_checkpoint_exchange: Optional[int] = None
    exchange_count: int = Field(default=0, ge=0)
    student_interests: Tuple[str, ...] = ()
    scaffolding_level: int = Field(default=0, ge=0, le=MAX_SCAFFOLDING)  # 0=none, 1=choices, 2=hint, 3=narrowed
    awaiting_reasoning: bool = False
    last_incorrect_answer: Optional[str] = None


class TurnOutcome(BaseModel):
    """What the orchestration layer observed during one exchange."""
    correct: Optional[bool] = None  # None when no answer was graded this turn
    concept: Optional[str] = None
    question_type: Optional[QuestionType] = None
    error_type: Optional[ErrorType] = None
    answer: Optional[str] = None
    checkpoint: bool = False
    interests: Tuple[str, ...] = ()


def exchanges_since_checkpoint(state: ConversationState) -> int:
    return state.exchange_count - (state.last_checkpoint_exchange or 0)


def is_mastery_ready(state: ConversationState) -> bool:
    """Enough of a correct streak on enough questions to advance topics."""
    return (
        state.consecutive_correct >= MASTERY_STREAK
        and state.questions_this_concept >= MASTERY_QUESTIONS
    )


def is_checkpoint_due(state: ConversationState) -> bool:
    return exchanges_since_checkpoint(state) >= CHECKPOINT_INTERVAL


def unused_question_types(state: ConversationState) -> Tuple[str, ...]:
    """Formats not yet used on this concept, in rotation order."""
    used: FrozenSet[str] = frozenset(state.question_types_used)
    return tuple(qt for qt in QUESTION_TYPES if qt not in used)


def advance(state: ConversationState, outcome: TurnOutcome) -> ConversationState:
    """Return the state after one exchange; ``state`` itself is untouched."""
    changes: dict = {"exchange_count": state.exchange_count + 1}

    # A new concept restarts the per-concept counters.
    concept_changed = bool(outcome.concept) and outcome.concept != state.current_concept
    if concept_changed:
        changes.update(
            current_concept=outcome.concept,
            consecutive_correct=0,
            questions_this_concept=0,
            error_count=0,
            question_types_used=(),
            scaffolding_level=0,
            last_error_type=None,
        )
    consecutive = changes.get("consecutive_correct", state.consecutive_correct)
    questions = changes.get("questions_this_concept", state.questions_this_concept)
    errors = changes.get("error_count", state.error_count)
    scaffolding = changes.get("scaffolding_level", state.scaffolding_level)
    used = changes.get("question_types_used", state.question_types_used)

    if outcome.question_type:
        questions += 1
        if outcome.question_type not in used:
            used = used + (outcome.question_type,)
        # Every format has been tried: start a new rotation.
        if len(used) == len(QUESTION_TYPES):
            used = (outcome.question_type,)
        changes.update(last_question_type=outcome.question_type)

    if outcome.correct is True:
        consecutive += 1
        scaffolding = max(0, scaffolding - 1)
        changes.update(awaiting_reasoning=False, last_incorrect_answer=None)
    elif outcome.correct is False:
        consecutive = 0
        errors += 1
        scaffolding = min(MAX_SCAFFOLDING, scaffolding + 1)
        changes.update(
            awaiting_reasoning=True,
            last_incorrect_answer=outcome.answer,
            last_error_type=outcome.error_type or "unknown",
        )

    if outcome.checkpoint:
        changes.update(
            concept_checkpoints=state.concept_checkpoints + 1,
            last_checkpoint_exchange=changes["exchange_count"],
        )

    if outcome.interests:
        merged = list(state.student_interests)
        merged.extend(i for i in outcome.interests if i not in merged)
        changes.update(student_interests=tuple(merged))

    changes.update(
        consecutive_correct=consecutive,
        questions_this_concept=questions,
        error_count=errors,
        scaffolding_level=scaffolding,
        question_types_used=used,
    )
    return state.model_copy(update=changes)


def describe(state: ConversationState) -> str:
    """Render the state block injected into the next system prompt."""
    lines = ["CONVERSATION STATE:"]
    lines.append(f"- Exchange #{state.exchange_count} in this session")
    lines.append(f"- Consecutive correct answers: {state.consecutive_correct}")
    lines.append(f"- Questions on current concept: {state.questions_this_concept}")

    if state.current_concept:
        lines.append(f"- Currently teaching: {state.current_concept}")

    if state.question_types_used:
        lines.append(f"- Question types used this topic: {', '.join(state.question_types_used)}")
        remaining = unused_question_types(state)
        if remaining:
            lines.append(f"- Question types NOT yet used: {', '.join(remaining)} (try these next)")

    if state.error_count > 0:
        lines.append(f"- Errors this concept: {state.error_count}")
        if state.last_error_type:
            lines.append(f"- Last error type: {state.last_error_type}")

    if state.awaiting_reasoning:
        lines.append("- AWAITING: Student should explain their reasoning for incorrect answer")
        if state.last_incorrect_answer:
            lines.append(f'- Their incorrect answer was: "{state.last_incorrect_answer}"')

    if state.student_interests:
        lines.append(f"- Student interests: {', '.join(state.student_interests)} (use for examples)")

    if is_mastery_ready(state):
        lines.append(f"- PACING: Student has mastered this concept ({MASTERY_STREAK}+ correct). Ready to advance.")
    elif state.consecutive_correct >= MASTERY_STREAK - 1:
        lines.append("- PACING: Student is doing well. One more varied problem before advancing.")

    if is_checkpoint_due(state):
        lines.append(
            f"- CHECKPOINT DUE: {exchanges_since_checkpoint(state)} exchanges since last "
            "conceptual check. Ask them to explain in their own words."
        )

    if state.scaffolding_level > 0:
        lines.append(
            f"- Scaffolding level: {state.scaffolding_level}/{MAX_SCAFFOLDING} "
            "(progressively more help given)"
        )

    return "\n".join(lines)
