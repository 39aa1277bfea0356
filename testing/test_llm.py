"""Tests for the completion client, against a stand-in OpenAI client."""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from guided_review.config import settings
from guided_review.models import Message, SessionSummary
from guided_review.services.llm import CompletionClient, CompletionError, uses_completion_tokens


class FakeCompletions:
    """Records request params and replays a canned response."""

    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.params: dict = {}

    def create(self, **params):
        self.params = params
        if self.error is not None:
            raise self.error
        return self.response


def fake_openai(completions: FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def text_response(content):
    message = SimpleNamespace(content=content, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def tool_response(arguments: str | None):
    calls = [SimpleNamespace(function=SimpleNamespace(arguments=arguments))] if arguments is not None else None
    message = SimpleNamespace(content=None, tool_calls=calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


MESSAGES = [Message(role="system", content="Be brief."), Message(role="user", content="Hi")]


@pytest.mark.parametrize(
    ("model", "expected"),
    [("gpt-4o-mini", False), ("gpt-4o", False), ("o1-mini", True), ("gpt-5.2", True), ("gpt-5.2-pro", True)],
)
def test_token_parameter_depends_on_model(model, expected):
    assert uses_completion_tokens(model) is expected


def test_complete_strips_reply_and_sends_messages():
    completions = FakeCompletions(text_response("  Hello there.  \n"))
    client = CompletionClient(client=fake_openai(completions))

    text = client.complete(MESSAGES, temperature=0.2, max_tokens=50, model="gpt-4o-mini")

    assert text == "Hello there."
    assert completions.params["messages"] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "Hi"},
    ]
    assert completions.params["temperature"] == 0.2
    assert completions.params["max_tokens"] == 50
    assert "max_completion_tokens" not in completions.params


def test_complete_uses_completion_tokens_for_newer_models():
    completions = FakeCompletions(text_response("ok"))
    client = CompletionClient(client=fake_openai(completions))

    client.complete(MESSAGES, max_tokens=10, model="gpt-5.2")

    assert completions.params["max_completion_tokens"] == 10
    assert "max_tokens" not in completions.params


def test_complete_falls_back_to_settings(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_MODEL", "gpt-4o-mini")
    monkeypatch.setattr(settings, "MAX_TOKENS", 1000)
    monkeypatch.setattr(settings, "TEMPERATURE", 0.7)
    completions = FakeCompletions(text_response("ok"))

    CompletionClient(client=fake_openai(completions)).complete(MESSAGES)

    assert completions.params["model"] == "gpt-4o-mini"
    assert completions.params["max_tokens"] == 1000
    assert completions.params["temperature"] == 0.7


@pytest.mark.parametrize("content", [None, "", "   "])
def test_complete_rejects_empty_reply(content):
    client = CompletionClient(client=fake_openai(FakeCompletions(text_response(content))))

    with pytest.raises(CompletionError):
        client.complete(MESSAGES)


def test_complete_wraps_api_errors():
    client = CompletionClient(client=fake_openai(FakeCompletions(error=OpenAIError("quota exceeded"))))

    with pytest.raises(CompletionError, match="quota exceeded"):
        client.complete(MESSAGES)


def test_complete_structured_validates_function_arguments():
    arguments = json.dumps(
        {
            "summary": "Solid session.",
            "conceptsMastered": ["slope"],
            "conceptsNeedingWork": ["y-intercept"],
            "recommendedNextSteps": ["Practice intercepts"],
            "overallProgress": "Improving",
        }
    )
    completions = FakeCompletions(tool_response(arguments))
    client = CompletionClient(client=fake_openai(completions))

    summary = client.complete_structured(MESSAGES, SessionSummary, name="generate_session_summary")

    assert summary.concepts_mastered == ["slope"]
    assert summary.concepts_needing_work == ["y-intercept"]
    tool = completions.params["tools"][0]["function"]
    assert tool["name"] == "generate_session_summary"
    assert "conceptsMastered" in tool["parameters"]["properties"]
    assert completions.params["tool_choice"]["function"]["name"] == "generate_session_summary"


@pytest.mark.parametrize("arguments", [None, "", '{"conceptsMastered": "not a list"}'])
def test_complete_structured_rejects_missing_or_invalid_call(arguments):
    client = CompletionClient(client=fake_openai(FakeCompletions(tool_response(arguments))))

    with pytest.raises(CompletionError):
        client.complete_structured(MESSAGES, SessionSummary, name="generate_session_summary")


def test_client_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)

    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        CompletionClient()
