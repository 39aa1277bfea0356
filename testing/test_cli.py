"""Tests for the terminal session runner and its trace persistence."""

from __future__ import annotations

from guided_review.main import replay, run_session
from guided_review.models import EmbeddedQuestion, SessionContext, SessionSummary, TutorReply
from guided_review.services.trace_store import TraceStore
from guided_review.state import describe, is_mastery_ready

QUESTION = EmbeddedQuestion(
    text="What is the slope of y = 3x + 1?",
    options=[{"label": "A", "text": "1"}, {"label": "B", "text": "3"}],
    correct_answer="B",
)


class FakeTutor:
    """Tutor stub for deterministic sessions."""

    def __init__(self) -> None:
        self.feedback: list[tuple[str, bool]] = []
        self.summaries: list[tuple[int, int, list[str]]] = []

    def introduce(self, context):
        return TutorReply(response=f"Welcome to {context.topic}.", concepts=[context.topic])

    def respond(self, message, context):
        return TutorReply(
            response="The slope is the number multiplying x.",
            embedded_question=QUESTION,
            concepts=[context.topic, "slope"],
            suggested_follow_up="Try this practice question to test your understanding.",
        )

    def question_feedback(self, answer, question, is_correct, context):
        self.feedback.append((answer, is_correct))
        return TutorReply(response="Exactly!" if is_correct else "How did you get that?")

    def summarize(self, context, attempted, correct, concepts, minutes):
        self.summaries.append((attempted, correct, list(concepts)))
        return SessionSummary(summary="Good session.", recommended_next_steps=["Keep going"])


def scripted(lines):
    remaining = list(lines)

    def read_line(prompt: str) -> str:
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return read_line


def test_session_grades_answers_and_saves_traces(tmp_path):
    tutor = FakeTutor()
    store = TraceStore(tmp_path / "turn_traces.json")
    output: list[str] = []
    context = SessionContext(subject="Math", topic="Linear Equations")

    final = run_session(tutor, context, store, read_line=scripted(["What is slope?", "b)", "quit"]), write=output.append)

    assert tutor.feedback == [("B", True)]
    assert (final.questions_attempted, final.questions_correct) == (1, 1)
    assert final.state.exchange_count == 2
    assert final.state.consecutive_correct == 1
    assert [m.role for m in final.history] == ["assistant", "user", "assistant", "user", "assistant"]
    assert tutor.summaries == [(1, 1, ["Linear Equations", "slope"])]
    assert "A) 1" in "\n".join(output)
    assert output[-2:] == ["Good session.", "- Keep going"]

    stored = store.load()
    assert len(stored) == 1
    (session_id, events), = stored.items()
    assert session_id.startswith("Linear Equations-")
    assert [event["stage"] for event in events] == ["Introduction", "Tutor", "Feedback"]
    assert events[1]["question"] is True


def test_wrong_answer_raises_scaffolding(tmp_path):
    tutor = FakeTutor()
    context = SessionContext(subject="Math", topic="Linear Equations")

    final = run_session(
        tutor, context, TraceStore(tmp_path / "t.json"), read_line=scripted(["go", "A"]), write=lambda _: None
    )

    assert tutor.feedback == [("A", False)]
    assert final.state.scaffolding_level == 1
    assert final.state.awaiting_reasoning is True
    assert final.state.last_incorrect_answer == "A"


def test_prose_while_question_pending_is_a_new_turn(tmp_path):
    tutor = FakeTutor()
    context = SessionContext(subject="Math", topic="Linear Equations")

    final = run_session(
        tutor,
        context,
        TraceStore(tmp_path / "t.json"),
        read_line=scripted(["go", "I think it is about steepness", "exit"]),
        write=lambda _: None,
    )

    assert tutor.feedback == []
    assert final.questions_attempted == 0
    assert final.state.exchange_count == 2


def test_replay_processes_saved_reply(tmp_path):
    reply = tmp_path / "reply.txt"
    reply.write_text(
        'Try this. <question>{"text":"What is 2+2?","options":[{"label":"A","text":"3"},'
        '{"label":"B","text":"4"}],"correctAnswer":"B"}</question>',
        encoding="utf-8",
    )

    result = replay(reply, "Arithmetic")

    assert result.response == "Try this."
    assert result.embedded_question.correct_answer == "B"


def test_three_correct_answers_reach_mastery(tmp_path):
    tutor = FakeTutor()
    context = SessionContext(subject="Math", topic="Linear Equations")

    final = run_session(
        tutor,
        context,
        TraceStore(tmp_path / "t.json"),
        read_line=scripted(["go", "B", "again", "B", "more", "B"]),
        write=lambda _: None,
    )

    assert final.state.current_concept == "Linear Equations"
    assert final.state.questions_this_concept == 3
    assert final.state.consecutive_correct == 3
    assert final.state.question_types_used == ("computation", "recognition", "conceptual")
    assert is_mastery_ready(final.state)
    prompt_state = describe(final.state)
    assert "Currently teaching: Linear Equations" in prompt_state
    assert "mastered this concept" in prompt_state
