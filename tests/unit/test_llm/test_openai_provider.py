"""Unit tests for the OpenAI provider."""

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from context_compactor.llm.providers.base import _PROVIDER_REGISTRY
from context_compactor.llm.providers.openai import OpenAIProvider


def make_client(response=None, error=None) -> MagicMock:
    client = MagicMock()
    if error is not None:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        client.chat.completions.create = AsyncMock(return_value=response)
    return client


def make_response(content="ok", finish_reason="stop", usage=None, model="gpt-4o-mini"):
    choice = SimpleNamespace(
        message=SimpleNamespace(content=content), finish_reason=finish_reason
    )
    return SimpleNamespace(choices=[choice], usage=usage, model=model)


class TestOpenAIProviderRegistration:
    """Tests for provider registration."""

    def test_registers_under_openai(self):
        assert _PROVIDER_REGISTRY["openai"] is OpenAIProvider


class TestOpenAIProviderGenerate:
    """Tests for OpenAIProvider.generate."""

    @pytest.mark.asyncio
    async def test_system_prompt_becomes_leading_message(self):
        client = make_client(make_response())
        provider = OpenAIProvider(client=client)
        messages = [{"role": "user", "content": "hi"}]

        await provider.generate(messages, model="gpt-4o-mini", system="be brief", max_tokens=200)

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ]
        assert kwargs["max_tokens"] == 200
        # Caller's list is not modified
        assert messages == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_optional_params_omitted(self):
        client = make_client(make_response())
        provider = OpenAIProvider(client=client)

        await provider.generate([{"role": "user", "content": "hi"}], model="gpt-4o-mini")

        kwargs = client.chat.completions.create.await_args.kwargs
        assert "max_tokens" not in kwargs
        assert "temperature" not in kwargs

    @pytest.mark.asyncio
    async def test_parses_content_and_usage(self):
        usage = SimpleNamespace(prompt_tokens=12, completion_tokens=4, total_tokens=16)
        provider = OpenAIProvider(client=make_client(make_response("a summary", usage=usage)))

        result = await provider.generate([{"role": "user", "content": "hi"}], model="gpt-4o-mini")

        assert result.content == "a summary"
        assert result.stop_reason == "stop"
        assert result.usage == {"input_tokens": 12, "output_tokens": 4, "total_tokens": 16}

    @pytest.mark.asyncio
    async def test_null_content_becomes_empty_string(self):
        provider = OpenAIProvider(client=make_client(make_response(content=None)))

        result = await provider.generate([{"role": "user", "content": "hi"}], model="gpt-4o-mini")

        assert result.content == ""

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self):
        provider = OpenAIProvider(client=make_client(error=ConnectionError("timed out")))

        with pytest.raises(RuntimeError, match="OpenAI Chat Completions API call failed"):
            await provider.generate([{"role": "user", "content": "hi"}], model="gpt-4o-mini")

    @pytest.mark.asyncio
    async def test_request_is_debug_logged(self, caplog):
        provider = OpenAIProvider(client=make_client(make_response()))

        with caplog.at_level(logging.DEBUG, logger="context_compactor.llm.providers.openai"):
            await provider.generate(
                [{"role": "user", "content": "hi"}], model="gpt-4o-mini", max_tokens=200
            )

        assert "model=gpt-4o-mini max_tokens=200" in caplog.text
