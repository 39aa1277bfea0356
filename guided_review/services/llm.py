"""OpenAI chat completion client."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Type, TypeVar

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from guided_review.config import settings
from guided_review.models import Message

log = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

STRUCTURED_MAX_TOKENS = 2000


class CompletionError(RuntimeError):
    """The completion service failed or returned nothing usable."""


def uses_completion_tokens(model: str) -> bool:
    """o1 and gpt-5 models reject ``max_tokens``."""
    return model.startswith("o1") or "gpt-5" in model


class CompletionClient:
    def __init__(self, client: Optional[Any] = None, api_key: Optional[str] = None):
        if client is None:
            # .env values sometimes carry stray whitespace.
            key = (api_key or settings.OPENAI_API_KEY or "").strip()
            if not key:
                raise ValueError("OPENAI_API_KEY is not set")
            client = OpenAI(api_key=key)
        self.client = client

    def _request(
        self,
        messages: Sequence[Message],
        temperature: Optional[float],
        max_tokens: Optional[int],
        model: Optional[str],
    ) -> dict[str, Any]:
        model = model or settings.OPENAI_MODEL
        params: dict[str, Any] = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
            "temperature": settings.TEMPERATURE if temperature is None else temperature,
        }
        token_key = "max_completion_tokens" if uses_completion_tokens(model) else "max_tokens"
        params[token_key] = max_tokens or settings.MAX_TOKENS
        return params

    def complete(
        self,
        messages: Sequence[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        """Return the stripped reply text."""
        params = self._request(messages, temperature, max_tokens, model)
        try:
            response = self.client.chat.completions.create(**params)
        except OpenAIError as e:
            log.error(f"[LLM] Completion failed: {e}")
            raise CompletionError(f"Failed to generate AI response: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise CompletionError("No content in OpenAI response")
        return content.strip()

    def complete_structured(
        self,
        messages: Sequence[Message],
        schema: Type[T],
        name: str,
        description: str = "",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> T:
        """Force a single function call shaped like ``schema`` and validate its arguments."""
        params = self._request(messages, temperature, max_tokens or STRUCTURED_MAX_TOKENS, model)
        params["tools"] = [
            {
                "type": "function",
                "function": {
                    "name": name,
                    "description": description,
                    "parameters": schema.model_json_schema(by_alias=True),
                },
            }
        ]
        params["tool_choice"] = {"type": "function", "function": {"name": name}}

        try:
            response = self.client.chat.completions.create(**params)
        except OpenAIError as e:
            log.error(f"[LLM] Structured completion failed: {e}")
            raise CompletionError(f"Failed to generate structured data: {e}") from e

        message = response.choices[0].message if response.choices else None
        calls = (message.tool_calls or []) if message is not None else []
        if not calls or not calls[0].function.arguments:
            raise CompletionError("No function call in OpenAI response")

        try:
            return schema.model_validate_json(calls[0].function.arguments)
        except ValidationError as e:
            raise CompletionError(f"Invalid {name} arguments: {e.error_count()} error(s)") from e
