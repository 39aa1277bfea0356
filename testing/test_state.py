"""Tests for conversation state signals and updates."""

import pytest
from pydantic import ValidationError

from guided_review.state import (
    MAX_SCAFFOLDING,
    QUESTION_TYPES,
    ConversationState,
    TurnOutcome,
    advance,
    describe,
    is_checkpoint_due,
    is_mastery_ready,
    unused_question_types,
)


@pytest.mark.parametrize(
    ("streak", "questions", "ready"),
    [(3, 3, True), (5, 4, True), (2, 3, False), (3, 2, False), (0, 0, False)],
)
def test_mastery_needs_streak_and_question_count(streak, questions, ready):
    state = ConversationState(consecutive_correct=streak, questions_this_concept=questions)

    assert is_mastery_ready(state) is ready


@pytest.mark.parametrize(
    ("exchanges", "last_checkpoint", "due"),
    [(4, None, True), (3, None, False), (5, 2, False), (6, 2, True)],
)
def test_checkpoint_due_after_four_exchanges(exchanges, last_checkpoint, due):
    state = ConversationState(exchange_count=exchanges, last_checkpoint_exchange=last_checkpoint)

    assert is_checkpoint_due(state) is due


def test_unused_question_types_keep_rotation_order():
    state = ConversationState(question_types_used=("computation", "reverse"))

    assert unused_question_types(state) == ("recognition", "conceptual", "application", "prediction")
    assert unused_question_types(ConversationState()) == QUESTION_TYPES


def test_state_accepts_camel_case_wire_keys():
    state = ConversationState.model_validate({"consecutiveCorrect": 3, "questionsThisConcept": 3})

    assert is_mastery_ready(state)


def test_state_is_immutable():
    state = ConversationState()

    with pytest.raises(ValidationError):
        state.consecutive_correct = 4


def test_advance_returns_new_state_on_correct_answer():
    state = ConversationState(scaffolding_level=2, awaiting_reasoning=True, last_incorrect_answer="C")

    after = advance(state, TurnOutcome(correct=True, question_type="computation"))

    assert state.exchange_count == 0 and state.consecutive_correct == 0
    assert after.exchange_count == 1
    assert after.consecutive_correct == 1
    assert after.questions_this_concept == 1
    assert after.question_types_used == ("computation",)
    assert after.last_question_type == "computation"
    assert after.scaffolding_level == 1
    assert after.awaiting_reasoning is False
    assert after.last_incorrect_answer is None


def test_incorrect_answers_raise_scaffolding_to_cap():
    state = ConversationState(consecutive_correct=2)

    for _ in range(5):
        state = advance(state, TurnOutcome(correct=False, answer="C"))

    assert state.consecutive_correct == 0
    assert state.error_count == 5
    assert state.scaffolding_level == MAX_SCAFFOLDING
    assert state.awaiting_reasoning is True
    assert state.last_incorrect_answer == "C"
    assert state.last_error_type == "unknown"


def test_new_concept_resets_per_concept_counters():
    state = ConversationState(
        current_concept="slope",
        consecutive_correct=2,
        questions_this_concept=4,
        error_count=1,
        question_types_used=("computation",),
        scaffolding_level=2,
        exchange_count=7,
    )

    after = advance(state, TurnOutcome(concept="y-intercept"))

    assert after.current_concept == "y-intercept"
    assert (after.consecutive_correct, after.questions_this_concept, after.error_count) == (0, 0, 0)
    assert after.question_types_used == ()
    assert after.scaffolding_level == 0
    assert after.exchange_count == 8


def test_question_type_rotation_restarts_when_exhausted():
    state = ConversationState()

    for question_type in QUESTION_TYPES:
        state = advance(state, TurnOutcome(question_type=question_type))

    assert state.question_types_used == (QUESTION_TYPES[-1],)
    assert state.questions_this_concept == len(QUESTION_TYPES)


def test_checkpoint_records_exchange():
    state = ConversationState(exchange_count=5)

    after = advance(state, TurnOutcome(checkpoint=True))

    assert after.concept_checkpoints == 1
    assert after.last_checkpoint_exchange == 6
    assert not is_checkpoint_due(after)


def test_interests_merge_without_duplicates():
    state = ConversationState(student_interests=("soccer",))

    after = advance(state, TurnOutcome(interests=("gaming", "soccer")))

    assert after.student_interests == ("soccer", "gaming")


def test_describe_reports_pacing_and_checkpoint():
    state = ConversationState(
        consecutive_correct=3,
        questions_this_concept=3,
        exchange_count=4,
        question_types_used=("computation",),
        scaffolding_level=1,
    )

    text = describe(state)

    assert text.startswith("CONVERSATION STATE:")
    assert "PACING: Student has mastered this concept" in text
    assert "CHECKPOINT DUE" in text
    assert "Question types NOT yet used: recognition" in text
    assert "Scaffolding level: 1/3" in text


def test_describe_reports_awaited_reasoning():
    state = advance(ConversationState(), TurnOutcome(correct=False, answer="x = 4"))

    text = describe(state)

    assert "AWAITING" in text
    assert 'Their incorrect answer was: "x = 4"' in text
