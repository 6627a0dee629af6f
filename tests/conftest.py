"""Shared pytest configuration and fixtures."""

from collections.abc import Callable
from typing import Any

import pytest

from context_compactor.llm.providers.base import LLMProvider, LLMResponse


class ScriptedProvider(LLMProvider):
    """In-memory provider that records every call.

    ``responder`` receives the user prompt and returns text, or raises.
    """

    def __init__(self, responder: Callable[[str], str] | None = None):
        self.responder = responder or (lambda prompt: "summary")
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        messages,
        model,
        system=None,
        max_tokens=None,
        temperature=None,
        **kwargs,
    ) -> LLMResponse:
        prompt = messages[-1]["content"]
        self.calls.append(
            {"prompt": prompt, "model": model, "system": system, "max_tokens": max_tokens}
        )
        return LLMResponse(content=self.responder(prompt), model=model)


@pytest.fixture
def scripted_provider():
    """Provider that always answers "summary"."""
    return ScriptedProvider()


@pytest.fixture
def failing_provider():
    """Provider whose every call fails."""

    def fail(prompt: str) -> str:
        raise RuntimeError("summarizer unavailable")

    return ScriptedProvider(fail)
